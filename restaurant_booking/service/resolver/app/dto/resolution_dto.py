"""Resolution DTOs for the conflict-resolution use case."""

import attrs

from restaurant_booking.service.shared_kernel.domain.entity import Booking


@attrs.define(frozen=True)
class ResolutionResult:
    """Outcome of one resolution transaction"""

    booking: Booking
    changed: bool  # False when the booking was already CONFIRMED/REJECTED (redelivery)

    @property
    def outcome(self) -> str:
        return self.booking.status.value.lower() if self.changed else 'noop'
