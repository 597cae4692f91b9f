import datetime as dt
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

import attrs

from restaurant_booking.platform.exception.exceptions import ValidationError
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.service.shared_kernel.domain.booking_state_machine import (
    decide_resolution,
    ensure_transition,
)
from restaurant_booking.service.shared_kernel.domain.enum import BookingStatus
from restaurant_booking.service.shared_kernel.domain.value_object import BookingSlot


RESOURCE_ID_MAX_LENGTH = 255
# party_size is stored as PostgreSQL integer (int4)
PARTY_SIZE_MAX = 2**31 - 1

_immutable = attrs.setters.frozen


@attrs.define
class Booking:
    # Identity and slot never change after creation; only status moves
    id: UUID = attrs.field(on_setattr=_immutable)
    resource_id: str = attrs.field(on_setattr=_immutable)
    date: dt.date = attrs.field(on_setattr=_immutable)
    time: dt.time = attrs.field(on_setattr=_immutable)
    party_size: int = attrs.field(on_setattr=_immutable)
    status: BookingStatus = BookingStatus.CREATED
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def slot(self) -> BookingSlot:
        return BookingSlot(resource_id=self.resource_id, date=self.date, time=self.time)

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        resource_id: Any,
        date: Any,
        time: Any,
        party_size: Any,
    ) -> 'Booking':
        """
        Validate a booking request and build it in CREATED status.

        Raises:
            ValidationError: naming the first offending field
        """
        if not isinstance(resource_id, str) or not resource_id.strip():
            raise ValidationError('resource_id is required', field='resource_id')
        if len(resource_id) > RESOURCE_ID_MAX_LENGTH:
            raise ValidationError(
                f'resource_id must be at most {RESOURCE_ID_MAX_LENGTH} characters',
                field='resource_id',
            )
        # datetime is a date subclass; a timestamp is not a booking date
        if not isinstance(date, dt.date) or isinstance(date, datetime):
            raise ValidationError('date is required', field='date')
        if not isinstance(time, dt.time):
            raise ValidationError('time is required', field='time')
        # Slots are restaurant-local wall-clock times
        if time.tzinfo is not None:
            raise ValidationError('time must not carry a UTC offset', field='time')
        if party_size is None:
            raise ValidationError('party_size is required', field='party_size')
        if isinstance(party_size, bool) or not isinstance(party_size, int) or party_size < 1:
            raise ValidationError(
                'party_size must be a number greater than or equal to 1', field='party_size'
            )
        if party_size > PARTY_SIZE_MAX:
            raise ValidationError(
                f'party_size must be at most {PARTY_SIZE_MAX}', field='party_size'
            )

        now = datetime.now(timezone.utc)
        return cls(
            id=id,
            resource_id=resource_id,
            date=date,
            time=time,
            party_size=party_size,
            status=BookingStatus.CREATED,
            created_at=now,
            updated_at=now,
        )

    def transition_to(self, target: BookingStatus) -> 'Booking':
        ensure_transition(self.status, target)
        return attrs.evolve(self, status=target, updated_at=datetime.now(timezone.utc))

    def start_availability_check(self) -> 'Booking':
        if self.status is BookingStatus.CHECKING_AVAILABILITY:
            return self
        return self.transition_to(BookingStatus.CHECKING_AVAILABILITY)

    def resolve(self, *, has_conflict: bool) -> 'Booking':
        target = decide_resolution(current=self.status, has_conflict=has_conflict)
        if target == self.status:
            return self
        return self.transition_to(target)
