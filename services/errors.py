"""
Error taxonomy for the auth session core.

Every error carries the HTTP status and the error code the API layer renders.
Services raise these where the condition is detected; api.errors turns them
into the uniform error envelope. Field-level validation problems use
marshmallow.ValidationError instead.
"""
from __future__ import annotations


class AuthError(Exception):
    status = 400
    error = "BAD_REQUEST"

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "Bad request"


class UnauthorizedError(AuthError):
    """Bad credentials, unusable token, unknown user."""

    status = 401
    error = "UNAUTHORIZED"

    @classmethod
    def default_message(cls) -> str:
        return "Unauthorized"


class ConflictError(AuthError):
    status = 409
    error = "CONFLICT"

    @classmethod
    def default_message(cls) -> str:
        return "Conflict"


class NotFoundError(AuthError):
    status = 404
    error = "NOT_FOUND"

    @classmethod
    def default_message(cls) -> str:
        return "Resource not found"


class InfrastructureError(AuthError):
    """The datastore (or another backing service) failed. Not retried here."""

    status = 503
    error = "SERVICE_UNAVAILABLE"

    @classmethod
    def default_message(cls) -> str:
        return "Service temporarily unavailable"
