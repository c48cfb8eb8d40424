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


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class InsufficientParticipantsError(AppError):
    """Raised when fewer than two participants can enter a bracket."""

    def __init__(self, count):
        """Initialize the error with the number of participants found."""
        super().__init__(
            f"Not enough teams to generate a bracket (found {count})", 422
        )
        self.count = count


class BracketAlreadyExistsError(DuplicateResourceError):
    """Raised when a bracket is generated twice for one tournament."""

    def __init__(self, message="Bracket already generated for this tournament."):
        """Initialize the error."""
        super().__init__(message)


class InvalidTransitionError(AppError):
    """Raised when a match cannot move to the requested state."""

    def __init__(self, message="Invalid match state transition."):
        """Initialize the error."""
        super().__init__(message, 409)


class PersistenceError(AppError):
    """Raised when Firestore fails while reading or committing."""

    def __init__(self, message="A database error occurred. Please try again later."):
        """Initialize the error."""
        super().__init__(message, 503)


class PermissionDeniedError(AppError):
    """Raised when the signed-in user may not act on a resource."""

    def __init__(self, message="You are not allowed to perform this action."):
        """Initialize the error."""
        super().__init__(message, 403)
