"""
Password hashing (bcrypt) and access tokens (JWT, python-jose).

Tokens are signed with JWT_SECRET from config/.env; algorithm, lifetime,
audience and issuer come from security.yaml. The `sub` claim is the user id.
"""

from datetime import timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from notesphere.backend.core.config import get_app_config, get_settings
from notesphere.backend.core.exceptions import AuthenticationError
from notesphere.backend.core.logging import get_logger
from notesphere.backend.core.utils import utc_now

logger = get_logger(__name__)

TOKEN_TYPE = "access"
# bcrypt only reads this many bytes of a password
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a wrong password and for a stored value that is not a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(subject: str, expires_delta: timedelta | None = None, **claims: Any) -> str:
    """
    Sign an access token for `subject`.

    Extra keyword arguments become additional claims (the API adds email).
    Without `expires_delta` the lifetime is security.jwt.access_token_expire_minutes.
    """
    jwt_config = get_app_config().security.jwt
    lifetime = expires_delta or timedelta(minutes=jwt_config.access_token_expire_minutes)

    payload = {
        **claims,
        "sub": subject,
        "type": TOKEN_TYPE,
        "aud": jwt_config.audience,
        "iss": jwt_config.issuer,
        "exp": utc_now() + lifetime,
    }
    return jwt.encode(payload, get_settings().jwt_secret, algorithm=jwt_config.algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Verify signature, expiry, audience, issuer and token type.

    Raises:
        AuthenticationError: On any failure, always with the same message
    """
    jwt_config = get_app_config().security.jwt
    try:
        payload = jwt.decode(
            token,
            get_settings().jwt_secret,
            algorithms=[jwt_config.algorithm],
            audience=jwt_config.audience,
            issuer=jwt_config.issuer,
        )
    except JWTError as e:
        logger.warning("Token rejected", extra={"error": str(e)})
        raise AuthenticationError("Invalid or expired token") from e

    if payload.get("type") != TOKEN_TYPE or not payload.get("sub"):
        logger.warning("Token rejected", extra={"error": "not an access token"})
        raise AuthenticationError("Invalid or expired token")
    return payload
