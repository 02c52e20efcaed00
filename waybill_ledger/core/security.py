"""
Password hashing and access tokens.

Passwords are stored as bcrypt hashes. Access tokens are HS256 JWTs signed
with ``JWT_SECRET`` and carry the claims needed to build an ``Actor``
without a database round trip.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from waybill_ledger.core.errors import UnauthorizedError
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.server.core.config import settings

logger = get_logger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_access_token(
    user_id: str,
    organization_id: str,
    role: str,
    driver_id: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Issue a signed access token.

    Args:
        user_id: Subject of the token
        organization_id: Organization the user belongs to
        role: User role value
        driver_id: Linked driver for driver-role users
        expires_minutes: Lifetime override, ``JWT_EXPIRES_MINUTES`` by default

    Returns:
        Encoded JWT string
    """
    config = settings.jwt
    now = datetime.now(timezone.utc)
    lifetime = expires_minutes if expires_minutes is not None else config.expires_minutes
    payload: Dict[str, Any] = {
        "sub": user_id,
        "organization_id": organization_id,
        "role": role,
        "driver_id": driver_id,
        "iat": now,
        "exp": now + timedelta(minutes=lifetime),
    }
    return jwt.encode(payload, config.secret, algorithm=config.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Validate a token and return its claims.

    Raises:
        UnauthorizedError: The token is expired, malformed or badly signed
    """
    config = settings.jwt
    try:
        payload = jwt.decode(token, config.secret, algorithms=[config.algorithm])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("token has expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected access token: {e}")
        raise UnauthorizedError("invalid token")
    if not payload.get("sub") or not payload.get("organization_id"):
        raise UnauthorizedError("invalid token")
    return payload
