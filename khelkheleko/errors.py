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


class PermissionDeniedError(AppError):
    """Raised when the current user may not act on a resource."""

    def __init__(self, message="You are not allowed to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class InvalidTransitionError(AppError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, current, target):
        """Initialize the error."""
        super().__init__(f"Cannot move from '{current}' to '{target}'.", 409)
        self.current = current
        self.target = target


class ConcurrentUpdateError(AppError):
    """Raised when a record changed since the caller last read it."""

    def __init__(self, message="This record was changed by someone else. Reload and try again."):
        """Initialize the error."""
        super().__init__(message, 409)


class PaymentVerificationError(AppError):
    """Raised when a gateway callback cannot be verified."""

    def __init__(self, message="Payment could not be verified."):
        """Initialize the error."""
        super().__init__(message, 400)


class AuthenticationError(AppError):
    """Raised when credentials are rejected."""

    def __init__(self, message="Invalid email or password."):
        """Initialize the error."""
        super().__init__(message, 401)


class PaymentPendingError(PaymentVerificationError):
    """Raised when the gateway has not confirmed a payment yet."""

    def __init__(self, message="eSewa has not confirmed this payment yet."):
        """Initialize the error."""
        super().__init__(message)
