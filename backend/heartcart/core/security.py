"""
Password hashing (passlib bcrypt) and bearer tokens (python-jose HS256).
"""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from heartcart.core.config import settings
from heartcart.core.logging import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """False for a wrong password or an unusable stored hash."""
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        logger.warning("Stored password hash is not usable")
        return False


def token_lifetime() -> timedelta:
    return timedelta(hours=settings.jwt_expiration_hours)


def create_access_token(claims: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Sign `claims` with `iat` and `exp` added."""
    issued_at = datetime.now(timezone.utc)
    payload = {**claims, "iat": issued_at, "exp": issued_at + (expires_delta or token_lifetime())}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Claims of a valid token; None when it is expired, tampered with or malformed."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.info("Expired access token")
    except JWTError as e:
        logger.warning("Invalid access token", error=str(e))
    return None


def generate_token_suffix(nbytes: int = 4) -> str:
    """Short random hex used in stored object names."""
    return secrets.token_hex(nbytes)
