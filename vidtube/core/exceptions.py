"""Typed API errors.

Every error the service reports is one of the classes below. They are raised
from services and dependencies and rendered once, by the handlers registered in
``vidtube.main``, into the standard ``{success, statusCode, message, errors}``
envelope.
"""
from typing import Any


class ApiError(Exception):
    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None, errors: list[Any] | None = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class BadRequestError(ApiError):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class InternalServerError(ApiError):
    status_code = 500
    default_message = "Something went wrong"
