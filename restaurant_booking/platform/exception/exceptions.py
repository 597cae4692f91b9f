class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ValidationError(DomainError):
    """Booking request rejected before touching the store or the event channel."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message, 400)


class InvalidStatusTransitionError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class StoreError(CustomBaseError):
    """Booking store failed mid unit-of-work; the transaction has been rolled back."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)


class ConflictTransactionError(CustomBaseError):
    """Conflict-resolution transaction aborted; safe to retry by redelivering the event."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)


class ChannelPublishError(CustomBaseError):
    """Event could not be published after the booking row was committed."""

    def __init__(self, message: str, *, booking_id: str | None = None) -> None:
        self.booking_id = booking_id
        super().__init__(message, 503)


class MalformedEventError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 422)
