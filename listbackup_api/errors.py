"""Error taxonomy for API handlers.

Each error carries the HTTP status it maps to. Handlers raise these and the
exception handlers in ``listbackup_api.main`` render them into the response
envelope.
"""


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Missing or malformed request input."""

    status_code = 400


class AuthError(AppError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AccessDeniedError(AppError):
    """Caller is authenticated but may not touch the requested entity."""

    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class ConflictError(AppError):
    status_code = 409


class DependencyError(AppError):
    """A store, object storage or payments call failed."""

    status_code = 500
