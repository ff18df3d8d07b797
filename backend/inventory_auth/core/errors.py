"""Domain errors raised by the auth services and rendered by the API layer."""

from __future__ import annotations

from fastapi import status


class AuthError(Exception):
    """Base class for recoverable, user-facing authentication errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    @property
    def headers(self) -> dict[str, str] | None:
        if self.status_code == status.HTTP_401_UNAUTHORIZED:
            return {"WWW-Authenticate": "Bearer"}
        return None


class InvalidCredentials(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Incorrect email or password"


class AccountDisabled(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Account is disabled. Contact an administrator."


class MissingToken(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication token not provided"


class MalformedToken(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication token is malformed"


class ExpiredToken(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication token has expired"


class InvalidSignature(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication token signature is invalid"


class InvalidResetToken(AuthError):
    message = "Invalid password reset token. Please request a new link."


class ExpiredResetToken(AuthError):
    message = "Password reset token has expired. Please request a new link."


class Forbidden(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Insufficient permissions"


class DuplicateEmail(AuthError):
    status_code = status.HTTP_409_CONFLICT
    message = "Email already registered"


class UserNotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found"


class SelfModification(AuthError):
    message = "Administrators cannot modify their own account this way"


class EmptyProfileUpdate(AuthError):
    message = "At least one profile field must be provided"


__all__ = [
    "AccountDisabled",
    "AuthError",
    "DuplicateEmail",
    "EmptyProfileUpdate",
    "ExpiredResetToken",
    "ExpiredToken",
    "Forbidden",
    "InvalidCredentials",
    "InvalidResetToken",
    "InvalidSignature",
    "MalformedToken",
    "MissingToken",
    "SelfModification",
    "UserNotFound",
]
