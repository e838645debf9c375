"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class InvalidStateError(AppError):
    """Raised when a tournament is not in the status an operation requires."""

    def __init__(self, message="Tournament is not in a valid state for this action."):
        """Initialize the error."""
        super().__init__(message, 409)


class ConflictError(AppError):
    """Raised when a conditional status write finds a different stored status."""

    def __init__(self, message="Tournament status changed concurrently."):
        """Initialize the error."""
        super().__init__(message, 409)


class SinkError(AppError):
    """Raised when a notification or announcement cannot be persisted."""

    def __init__(self, message="Failed to deliver notification."):
        """Initialize the error."""
        super().__init__(message, 502)


class RepositoryError(AppError):
    """Raised when listing, fetching or writing tournament data fails."""

    def __init__(self, message="A database error occurred."):
        """Initialize the error."""
        super().__init__(message, 503)
