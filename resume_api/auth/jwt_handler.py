import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

from resume_api.config import get_settings
from resume_api.utils.time import access_token_lifetime, refresh_token_lifetime

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# bcrypt with 12 rounds (OWASP recommended minimum)
BCRYPT_ROUNDS = 12

# bcrypt has a 72-byte limit (Blowfish). bcrypt 5.0+ raises ValueError for longer passwords.
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    """Encode password to bytes, truncating to 72 bytes for bcrypt compatibility."""
    b = password.encode("utf-8")
    return b[:BCRYPT_MAX_PASSWORD_BYTES] if len(b) > BCRYPT_MAX_PASSWORD_BYTES else b


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash. Returns False on invalid hash format."""
    if not hashed_password or not isinstance(hashed_password, str):
        return False
    try:
        return bcrypt.checkpw(
            _password_bytes(plain_password),
            hashed_password.encode("utf-8"),
        )
    except (ValueError, TypeError) as e:
        logger.warning("bcrypt.checkpw failed (hash may be incompatible): %s", e)
        return False


def _create_token(
    user_id: str,
    email: str,
    token_type: str,
    lifetime_seconds: int,
    secret: str,
    issued_at: Optional[datetime] = None,
) -> str:
    issued_at = issued_at or datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "email": email,
        "type": token_type,
        # Distinguishes tokens minted for the same user within the same second.
        "jti": uuid.uuid4().hex,
        "iat": int(issued_at.timestamp()),
        "exp": issued_at + timedelta(seconds=lifetime_seconds),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def create_access_token(user_id: str, email: str, issued_at: Optional[datetime] = None) -> str:
    settings = get_settings()
    return _create_token(
        user_id,
        email,
        "access",
        access_token_lifetime(settings.jwt_expires_in),
        settings.jwt_secret_key,
        issued_at,
    )


def create_refresh_token(user_id: str, email: str, issued_at: Optional[datetime] = None) -> str:
    settings = get_settings()
    return _create_token(
        user_id,
        email,
        "refresh",
        refresh_token_lifetime(settings.jwt_refresh_expires_in),
        settings.jwt_refresh_secret_key,
        issued_at,
    )


def _decode(token: str, secret: str, expected_type: str) -> Optional[dict[str, Any]]:
    if not token:
        return None
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != expected_type or not payload.get("sub"):
        return None
    return payload


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Verify signature and expiry of an access token; None when invalid."""
    return _decode(token, get_settings().jwt_secret_key, "access")


def decode_refresh_token(token: str) -> Optional[dict[str, Any]]:
    """Verify signature and expiry of a refresh token; None when invalid."""
    return _decode(token, get_settings().jwt_refresh_secret_key, "refresh")

