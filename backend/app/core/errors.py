"""Application error taxonomy.

Services raise these; the handlers registered in ``backend.app.main`` turn them
into the ``{"error": ..., "details": ...}`` response envelope.
"""

from typing import Any


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: Any = None):
        super().__init__(message, details)


class ForbiddenError(AppError):
    status_code = 403

    def __init__(self, message: str = "Forbidden", details: Any = None):
        super().__init__(message, details)


class NotFoundError(AppError):
    status_code = 404


class InternalError(AppError):
    status_code = 500


def error_body(message: str, details: Any = None) -> dict:
    body = {"error": message}
    if details is not None:
        body["details"] = details
    return body
