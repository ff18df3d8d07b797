"""Security utilities for hashing and JWT handling."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from fastapi.concurrency import run_in_threadpool
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from inventory_auth.core.config import get_settings
from inventory_auth.core.errors import (
    ExpiredToken,
    InvalidSignature,
    MalformedToken,
    MissingToken,
)
from inventory_auth.models.user import UserRole

# bcrypt only considers the first 72 bytes of a secret
_BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class TokenIdentity:
    """Identity asserted by a verified bearer token."""

    user_id: int
    role: UserRole


def _encode_secret(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a password against its hash using bcrypt."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_encode_secret(plain_password), hashed_password.encode())
    except (ValueError, TypeError):  # guard against malformed hashes
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storage using bcrypt."""
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(_encode_secret(password), bcrypt.gensalt(rounds)).decode()


async def verify_password_async(plain_password: str, hashed_password: str | None) -> bool:
    """``verify_password`` on a worker thread so the event loop keeps serving."""
    return await run_in_threadpool(verify_password, plain_password, hashed_password)


async def get_password_hash_async(password: str) -> str:
    return await run_in_threadpool(get_password_hash, password)


def create_access_token(
    subject: str, expires_delta: timedelta | None = None, **extra: Any
) -> tuple[str, datetime]:
    """Create a JWT access token and return it with its expiry."""
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    issued_at = datetime.now(UTC)
    expire = issued_at + expires_delta
    claims: dict[str, Any] = {"sub": subject, "iat": issued_at, "exp": expire}
    claims.update(extra)
    token = jwt.encode(
        claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )
    return token, expire


def issue_session_token(
    user_id: int, role: UserRole, expires_delta: timedelta | None = None
) -> tuple[str, datetime]:
    """Mint a bearer token asserting ``user_id`` and ``role``."""
    return create_access_token(str(user_id), expires_delta, role=role.value)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode a JWT token, raising JWTError on failure."""
    settings = get_settings()
    return jwt.decode(
        token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
    )


def extract_bearer_token(authorization: str | None) -> str:
    """Return the raw token from an ``Authorization: Bearer <token>`` header."""
    if authorization is None or not authorization.strip():
        raise MissingToken()
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise MalformedToken()
    return token


def verify_token(token: str) -> TokenIdentity:
    """Validate a bearer token and return the identity it asserts.

    Structure is checked before the signature so that undecodable input is
    reported as malformed rather than as a signature mismatch. Expiry is
    only evaluated once the signature has been accepted.
    """
    try:
        jwt.get_unverified_header(token)
        jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise MalformedToken() from exc

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError as exc:
        raise ExpiredToken() from exc
    except JWTClaimsError as exc:
        raise MalformedToken() from exc
    except JWTError as exc:
        raise InvalidSignature() from exc

    subject = payload.get("sub")
    if subject is None or payload.get("exp") is None:
        raise MalformedToken()
    try:
        user_id = int(subject)
        role = UserRole(payload.get("role"))
    except (TypeError, ValueError) as exc:
        raise MalformedToken() from exc
    return TokenIdentity(user_id=user_id, role=role)


def verify_authorization_header(authorization: str | None) -> TokenIdentity:
    """Run the full header-to-identity check used on protected routes."""
    return verify_token(extract_bearer_token(authorization))


def generate_reset_token() -> str:
    """Return an opaque, unguessable password reset token."""
    return secrets.token_hex(32)


def hash_reset_token(raw: str) -> str:
    """Digest stored in place of the raw reset token."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
