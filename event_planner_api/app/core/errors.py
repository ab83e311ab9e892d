"""
Typed application errors.

Services raise subclasses of ``AppError``; each carries an
``ErrorKind``.  The HTTP status for a kind is decided only at the
transport boundary (``STATUS_BY_KIND``), where a single exception
handler renders every error as ``{"error": message}``.
"""

from enum import Enum
from http import HTTPStatus
from typing import Dict


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    DUPLICATE_USERNAME = "duplicate_username"
    INVALID_CREDENTIALS = "invalid_credentials"
    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    NOT_FOUND = "not_found"
    STORE = "store"
    CONFIGURATION = "configuration"


STATUS_BY_KIND: Dict[ErrorKind, HTTPStatus] = {
    ErrorKind.VALIDATION: HTTPStatus.BAD_REQUEST,
    ErrorKind.DUPLICATE_USERNAME: HTTPStatus.BAD_REQUEST,
    ErrorKind.INVALID_CREDENTIALS: HTTPStatus.BAD_REQUEST,
    ErrorKind.MISSING_TOKEN: HTTPStatus.UNAUTHORIZED,
    ErrorKind.INVALID_TOKEN: HTTPStatus.UNAUTHORIZED,
    ErrorKind.EXPIRED_TOKEN: HTTPStatus.UNAUTHORIZED,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.STORE: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorKind.CONFIGURATION: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """Base class for all errors the API reports to clients."""

    kind: ErrorKind = ErrorKind.STORE
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return int(STATUS_BY_KIND[self.kind])

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.message}


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
    default_message = "Invalid request"


class DuplicateUsernameError(AppError):
    kind = ErrorKind.DUPLICATE_USERNAME
    default_message = "Username already exists"


class InvalidCredentialsError(AppError):
    # Same message for unknown user and wrong password.
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class AuthError(AppError):
    """Base for errors reported as 401 with a Bearer challenge."""


class MissingTokenError(AuthError):
    kind = ErrorKind.MISSING_TOKEN
    default_message = "No token, authorization denied"


class InvalidTokenError(AuthError):
    kind = ErrorKind.INVALID_TOKEN
    default_message = "Token is not valid"


class ExpiredTokenError(AuthError):
    kind = ErrorKind.EXPIRED_TOKEN
    default_message = "Token has expired"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class StoreError(AppError):
    kind = ErrorKind.STORE
    default_message = "Internal server error"


class ConfigurationError(AppError):
    kind = ErrorKind.CONFIGURATION
    default_message = "Invalid configuration"
