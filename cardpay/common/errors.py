"""Closed error taxonomy for the payment API.

Every failure a request can end in is one of the `AppError` subclasses below.
Each carries the HTTP status it maps to and the message the caller is allowed
to see. Lower-layer exceptions (SQLAlchemy, httpx) are converted with the
explicit `from_*` functions at the pipeline boundary.
"""

from enum import Enum

import httpx
from sqlalchemy.exc import SQLAlchemyError


class ErrorKind(str, Enum):
    BAD_REQUEST = "BAD_REQUEST"
    ENVIRONMENT = "ENVIRONMENT"
    GATEWAY = "GATEWAY"
    DATABASE = "DATABASE"
    INTERNAL = "INTERNAL"


class AppError(Exception):
    """Base of the taxonomy; not raised directly."""

    kind: ErrorKind
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        """Text placed in the `error` field of the response body."""

        return self.message


class BadRequestError(AppError):
    kind = ErrorKind.BAD_REQUEST
    status_code = 400


class EnvironmentConfigError(AppError):
    """Operator-side misconfiguration detected while serving a request."""

    kind = ErrorKind.ENVIRONMENT
    status_code = 500


class GatewayError(AppError):
    """Upstream authorization call failed (transport, status or payload)."""

    kind = ErrorKind.GATEWAY
    status_code = 502


class DatabaseError(AppError):
    """Persistence failed. Detail is for logs only."""

    kind = ErrorKind.DATABASE
    status_code = 500

    def __init__(self, message: str, original: SQLAlchemyError | None = None):
        super().__init__(message)
        self.original = original

    @property
    def public_message(self) -> str:
        return "Database operation failed."


class InternalServerError(AppError):
    kind = ErrorKind.INTERNAL
    status_code = 500


def from_database_error(exc: SQLAlchemyError) -> DatabaseError:
    return DatabaseError(f"{type(exc).__name__}: {exc}", original=exc)


def from_transport_error(exc: httpx.HTTPError) -> GatewayError:
    return GatewayError(f"External gateway call failed: {exc}")
