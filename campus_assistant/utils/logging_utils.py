import logging
import re

from campus_assistant.config import Config

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("campus_assistant")

# Suppress noisy external libraries
logging.getLogger("PyPDF2").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

# Patterns to mask
PATTERNS = {
    "EMAIL": (r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b', '[EMAIL]'),
    "PHONE": (r'(?<!\d)(?:\+?\d{1,3}[-\s]?)?\d{5}[-\s]?\d{5}(?!\d)', '[PHONE]'),
    "STUDENT_NUMBER": (r'\b\d{6,10}\b', '[STUDENT_ID]'),
    "NAME": (r'(?i)\b(name|student)["\']?\s*[:=]\s*["\']?([a-z]+(?:\s[a-z]+)?)["\']?', r'\1: [NAME_REDACTED]'),
}


def anonymize_text(text: str) -> str:
    """Mask PII in text"""
    if not isinstance(text, str):
        return str(text)

    for name, (pattern, replacement) in PATTERNS.items():
        text = re.sub(pattern, replacement, text)
    return text


def log_audit(action: str, user: str, details: str = ""):
    """Log an audit event with anonymization"""
    if not Config.ENABLE_AUDIT_LOG:
        return
    user_masked = anonymize_text(user)
    details_masked = anonymize_text(details)
    logger.info(f"AUDIT | Action: {action} | User: {user_masked} | Details: {details_masked}")


def get_logger():
    return logger
