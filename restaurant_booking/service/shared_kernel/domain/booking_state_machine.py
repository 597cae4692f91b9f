"""
Booking lifecycle rules, kept free of any store or broker access.

    CREATED -> CHECKING_AVAILABILITY -> CONFIRMED | REJECTED

CONFIRMED and REJECTED are terminal. Nothing re-enters CREATED or
CHECKING_AVAILABILITY once it has been left.
"""

from types import MappingProxyType

from restaurant_booking.platform.exception.exceptions import InvalidStatusTransitionError
from restaurant_booking.service.shared_kernel.domain.enum import BookingStatus


ALLOWED_TRANSITIONS = MappingProxyType(
    {
        BookingStatus.CREATED: frozenset({BookingStatus.CHECKING_AVAILABILITY}),
        BookingStatus.CHECKING_AVAILABILITY: frozenset(
            {BookingStatus.CONFIRMED, BookingStatus.REJECTED}
        ),
        BookingStatus.CONFIRMED: frozenset(),
        BookingStatus.REJECTED: frozenset(),
    }
)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(f'Cannot move booking from {current} to {target}')


def decide_resolution(*, current: BookingStatus, has_conflict: bool) -> BookingStatus:
    """
    Final status for a booking given whether another CONFIRMED booking holds its slot.

    Terminal bookings keep their status, which makes redelivered events no-ops.
    """
    if current.is_terminal:
        return current
    return BookingStatus.REJECTED if has_conflict else BookingStatus.CONFIRMED
