import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_list(name: str, default: str) -> list:
    raw = os.getenv(name, default)
    return [item.strip().lower().lstrip(".") for item in raw.split(",") if item.strip()]


class Config:
    ENVIRONMENT = os.getenv("CAMPUS_ENV", "production").strip().lower()

    # Security
    SECRET_KEY = os.getenv("SECRET_KEY")
    if not SECRET_KEY:
        if ENVIRONMENT in {"development", "test"}:
            SECRET_KEY = "campus-assistant-dev-secret"
        else:
            raise ValueError("No SECRET_KEY set. Please set SECRET_KEY in .env file for JWT security.")

    ADMIN_PASSWORD = str(os.getenv("ADMIN_PASSWORD") or "").strip()
    ADMIN_TOKEN_EXPIRE_HOURS = min(max(_env_int("ADMIN_TOKEN_EXPIRE_HOURS", 12), 1), 72)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    # Languages
    BASELINE_LANGUAGE = os.getenv("BASELINE_LANGUAGE", "en").strip().lower() or "en"

    # Ingestion
    SUPPORTED_EXTENSIONS = _env_list("SUPPORTED_EXTENSIONS", "pdf,docx,txt,doc")
    MAX_UPLOAD_BYTES = max(1024, _env_int("MAX_UPLOAD_BYTES", 20 * 1024 * 1024))
    ENTITY_SNIPPET_WINDOW = max(0, _env_int("ENTITY_SNIPPET_WINDOW", 50))
    INDEX_HISTORY_LIMIT = max(1, _env_int("INDEX_HISTORY_LIMIT", 50))

    # Search
    MIN_TOKEN_LENGTH = max(1, _env_int("MIN_TOKEN_LENGTH", 3))
    SEARCH_DEFAULT_LIMIT = max(1, _env_int("SEARCH_DEFAULT_LIMIT", 10))
    SEARCH_MAX_LIMIT = max(1, _env_int("SEARCH_MAX_LIMIT", 50))
    BODY_WEIGHT = _env_float("SEARCH_BODY_WEIGHT", 1.0)
    TITLE_WEIGHT = _env_float("SEARCH_TITLE_WEIGHT", 3.0)

    # Handoff
    HANDOFF_DEFAULT_DEPARTMENT = os.getenv("HANDOFF_DEFAULT_DEPARTMENT", "general")
    HANDOFF_DEFAULT_WAIT_SECONDS = max(0, _env_int("HANDOFF_DEFAULT_WAIT_SECONDS", 600))
    CONVERSATION_HISTORY_LIMIT = max(1, _env_int("CONVERSATION_HISTORY_LIMIT", 12))

    # Engine worker pool for CPU-bound work behind async endpoints
    ENGINE_MAX_WORKERS = max(1, _env_int("ENGINE_MAX_WORKERS", 4))
    ENABLE_AUDIT_LOG = _env_bool("ENABLE_AUDIT_LOG", True)
