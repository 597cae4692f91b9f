import datetime as dt
from datetime import datetime, timezone
from enum import StrEnum
from uuid import UUID

import attrs

from restaurant_booking.service.shared_kernel.domain.entity import Booking


class BookingEventType(StrEnum):
    BOOKING_CREATED = 'BOOKING_CREATED'


@attrs.define(frozen=True)
class BookingCreatedEvent:
    """Emitted by Intake after the CREATED row commits; consumed by the Resolver."""

    booking_id: UUID
    resource_id: str
    date: dt.date
    time: dt.time
    party_size: int
    occurred_at: datetime = attrs.field(factory=lambda: datetime.now(timezone.utc))
    event_type: BookingEventType = BookingEventType.BOOKING_CREATED

    @property
    def partition_key(self) -> str:
        return str(self.booking_id)

    @classmethod
    def from_booking(cls, booking: Booking) -> 'BookingCreatedEvent':
        return cls(
            booking_id=booking.id,
            resource_id=booking.resource_id,
            date=booking.date,
            time=booking.time,
            party_size=booking.party_size,
        )
