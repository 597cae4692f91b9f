"""Booking Status Enum"""

from enum import StrEnum


class BookingStatus(StrEnum):
    CREATED = 'CREATED'
    CHECKING_AVAILABILITY = 'CHECKING_AVAILABILITY'
    CONFIRMED = 'CONFIRMED'
    REJECTED = 'REJECTED'

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.CONFIRMED, BookingStatus.REJECTED)
