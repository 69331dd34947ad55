"""
Finsolvz Backend — Identity & Access Primitives
================================================

What:  Password hashing, access-token issuance/verification, bearer header
       parsing and temporary-password generation.
Why:   Leaf utilities shared by the auth dependency and the auth/user
       services; nothing here touches the database.
How:   bcrypt for password hashes, python-jose for HS256 JWTs.

Token claims:
    {"_id": "<user id hex>", "role": "SUPER_ADMIN|ADMIN|CLIENT",
     "iat": <issued at>, "exp": <issued at + JWT_EXPIRE_DAYS>}
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from finsolvz.config import settings
from finsolvz.exceptions import AuthenticationError, ConfigurationError, FinsolvzError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    """Hash a plaintext password with a fresh bcrypt salt."""
    try:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
    except (ValueError, TypeError) as e:
        raise FinsolvzError(
            message="Failed to hash password",
            code="PASSWORD_HASH_ERROR",
            cause=e,
        ) from e


def verify_password(plain: str, hashed: str) -> bool:
    """Return True when `plain` matches the stored bcrypt hash."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Stored password hash has an unexpected format")
        return False


def check_password(plain: str, hashed: str) -> None:
    """Raise PASSWORD_MISMATCH (401) when the password does not match."""
    if not verify_password(plain, hashed):
        raise AuthenticationError(message="Password does not match", code="PASSWORD_MISMATCH")


def generate_temporary_password() -> str:
    """12 random hex characters, used by the forgot-password flow."""
    return secrets.token_hex(6)


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


# ── Access tokens ─────────────────────────────────────────────────────────

def _require_secret(secret: Optional[str]) -> str:
    key = secret if secret is not None else settings.jwt_secret
    if not key:
        raise ConfigurationError(
            message="JWT secret is not configured",
            code="JWT_SECRET_MISSING",
        )
    return key


def create_access_token(
    user_id: str,
    role: str,
    secret: Optional[str] = None,
    expires_in: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Issue a signed access token for a user.

    Args:
        user_id:    Hex ObjectId of the user
        role:       Role name carried in the `role` claim
        secret:     Signing key override (defaults to settings.jwt_secret)
        expires_in: Lifetime override (defaults to JWT_EXPIRE_DAYS)
        now:        Issue time override, used by tests

    Raises:
        ConfigurationError: JWT_SECRET_MISSING when no key is configured
    """
    key = _require_secret(secret)
    issued_at = now or datetime.now(timezone.utc)
    lifetime = expires_in or timedelta(days=settings.jwt_expire_days)
    claims: Dict[str, Any] = {
        "_id": user_id,
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + lifetime).timestamp()),
    }
    return jwt.encode(claims, key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, secret: Optional[str] = None) -> Dict[str, Any]:
    """
    Verify a token's signature and expiry and return its claims.

    Raises:
        AuthenticationError: TOKEN_EXPIRED or JWT_INVALID
        ConfigurationError:  JWT_SECRET_MISSING
    """
    key = _require_secret(secret)
    try:
        claims = jwt.decode(token, key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise AuthenticationError(message="Token has expired", code="TOKEN_EXPIRED", cause=e) from e
    except JWTError as e:
        raise AuthenticationError(message="Invalid token", code="JWT_INVALID", cause=e) from e

    if not claims.get("_id") or not claims.get("role"):
        raise AuthenticationError(message="Invalid token claims", code="JWT_INVALID")
    return claims


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an `Authorization: Bearer <token>` header value."""
    if not authorization:
        raise AuthenticationError(message="Authorization header required", code="MISSING_AUTH_HEADER")
    if not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError(
            message="Authorization header must use the Bearer scheme",
            code="INVALID_AUTH_FORMAT",
        )
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError(message="Token required", code="MISSING_TOKEN")
    return token
