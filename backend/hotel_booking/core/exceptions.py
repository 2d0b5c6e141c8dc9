"""
Domain errors raised by the booking service.

The set is closed: routes map NotFoundError and BusinessRuleError to status
codes and never inspect anything else.
"""


class BookingError(Exception):
    """Base class for every failure the booking service signals."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(BookingError):
    """The targeted room or booking does not exist."""

    def __init__(self, message: str = "No result for this search!"):
        super().__init__(message)


class BusinessRuleError(BookingError):
    """An eligibility or capacity rule rejected the request."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
