"""Error taxonomy. Each error carries the HTTP status the API answers with."""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing or malformed fields."""
    status_code = 400


class AuthError(AppError):
    status_code = 401


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """Category still referenced by a task."""
    status_code = 400


class StorageError(AppError):
    """Backing file could not be read or written."""
    status_code = 500
