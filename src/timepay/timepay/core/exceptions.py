class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class DuplicateError(DomainError):
    """Raised when a uniqueness constraint is violated."""


class AuthenticationError(DomainError):
    """Raised when credentials or tokens are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class ConfigurationNotApplicable(ValidationError):
    """No active leave configuration covers the employee for this leave type."""


class InsufficientNotice(ValidationError):
    pass


class BackdatingNotAllowed(ValidationError):
    pass


class InsufficientBalance(ValidationError):
    """Requested leave days exceed what is left for the year."""

    def __init__(self, available: float, requested: float):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient leave balance. Available: {available:g} days, Requested: {requested:g} days"
        )


class MaxConsecutiveDaysExceeded(ValidationError):
    pass
