"""LeadCost-Engine exception hierarchy."""


class LeadCostError(Exception):
    """Base exception for all LeadCost errors."""

    def __init__(self, message: str = "", code: str = "LEADCOST_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(LeadCostError):
    """Raised for bad caller input. Never retried."""

    def __init__(self, message: str = "Invalid input", code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)


class InvalidActivityType(ValidationError):
    """Raised when an activity type is not email_sent or meeting_booked."""

    def __init__(self, message: str = 'Invalid activity type. Must be "email_sent" or "meeting_booked"'):
        super().__init__(message, code="INVALID_ACTIVITY_TYPE")


class InvalidRange(ValidationError):
    """Raised when a trends window is outside [1, 24] months."""

    def __init__(self, message: str = "Months parameter must be between 1 and 24"):
        super().__init__(message, code="INVALID_RANGE")


class InvalidDateRange(ValidationError):
    """Raised when a report date range is unparsable or inverted."""

    def __init__(self, message: str = "Invalid date range"):
        super().__init__(message, code="INVALID_DATE_RANGE")


class InvalidUsage(ValidationError):
    """Raised when a usage record carries negative tokens/cost or an unknown purpose."""

    def __init__(self, message: str = "Invalid usage record"):
        super().__init__(message, code="INVALID_USAGE")


class PersistenceError(LeadCostError):
    """Raised when the store is unavailable or a write fails."""

    def __init__(self, operation: str, message: str = "Persistence failure"):
        self.operation = operation
        super().__init__(f"{operation}: {message}", code="PERSISTENCE_ERROR")


class UpstreamError(LeadCostError):
    """Raised when a metered provider call fails before a cost is known."""

    def __init__(self, message: str = "Upstream provider call failed", status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, code="UPSTREAM_ERROR")
