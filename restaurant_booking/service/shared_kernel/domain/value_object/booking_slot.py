"""Booking slot value object."""

import datetime as dt

import attrs


@attrs.define(frozen=True)
class BookingSlot:
    """
    The contended unit: one resource (table) at one date and start time.

    At most one CONFIRMED booking may exist per slot.
    """

    resource_id: str
    date: dt.date
    time: dt.time

    @property
    def lock_key(self) -> str:
        """Stable text key hashed into the store's slot lock."""
        return f'{self.resource_id}|{self.date.isoformat()}|{self.time.strftime("%H:%M:%S")}'
