"""Error taxonomy and its mapping onto HTTP responses."""

from enum import StrEnum

import structlog
from starlette.responses import JSONResponse

logger = structlog.get_logger(__name__)

HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403
HTTP_INTERNAL_SERVER_ERROR = 500


class ErrorKind(StrEnum):
    """Failure categories surfaced by the issuer."""

    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        if self is ErrorKind.VALIDATION:
            return HTTP_BAD_REQUEST
        if self is ErrorKind.AUTHORIZATION:
            return HTTP_FORBIDDEN
        return HTTP_INTERNAL_SERVER_ERROR


class ServiceError(Exception):
    """A classified failure with a message that is safe to return to callers."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @classmethod
    def wrap(cls, kind: ErrorKind, message: str, cause: BaseException) -> "ServiceError":
        """Build an error chained to the exception that caused it."""
        err = cls(kind, message)
        err.__cause__ = cause
        return err


class InvalidArgumentError(ValueError):
    """Raised when a crypto primitive is called with unusable arguments."""


class UnsupportedAlgorithmError(ValueError):
    """Raised for signing algorithms outside the supported set."""


class InvalidKeyError(ValueError):
    """Raised when key material cannot back an RSA signing key."""


def error_response(error: ServiceError, **context: object) -> JSONResponse:
    """Log the full failure and return only the public message."""
    client_error = error.kind in (ErrorKind.VALIDATION, ErrorKind.AUTHORIZATION)
    log = logger.warning if client_error else logger.error
    if error.__cause__ is not None:
        context["exc_info"] = error
    log("request_failed", kind=str(error.kind), error=error.message, **context)
    return JSONResponse({"error": error.message}, status_code=error.kind.status_code)
