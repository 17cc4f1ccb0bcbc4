import datetime
from hmac import compare_digest
from typing import Any, Dict, Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from campus_assistant.config import Config


ALGORITHM = "HS256"
HASH_PREFIXES = ("pbkdf2:", "scrypt:")


def hash_password(password: str) -> str:
    """Hash a password for storage in ADMIN_PASSWORD."""
    return generate_password_hash(str(password or ""))


def verify_password(plain_password: str, stored_password: str) -> bool:
    """Verify plain input against a hashed or plain-text configured value."""
    plain = str(plain_password or "")
    stored = str(stored_password or "")
    if not plain or not stored:
        return False

    if stored.startswith(HASH_PREFIXES):
        try:
            return check_password_hash(stored, plain)
        except ValueError:
            return False
    return compare_digest(plain, stored)


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[datetime.timedelta] = None
) -> str:
    """Create a new JWT access token."""
    to_encode = data.copy()
    expire = datetime.datetime.now(datetime.timezone.utc) + (
        expires_delta or datetime.timedelta(hours=Config.ADMIN_TOKEN_EXPIRE_HOURS)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, Config.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify a JWT token."""
    try:
        return jwt.decode(token, Config.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
