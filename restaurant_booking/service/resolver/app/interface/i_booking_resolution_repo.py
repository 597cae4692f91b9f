"""
Booking Resolution Repository Interface

Every method runs inside the caller's unit of work; the locks it takes are
released when that transaction ends.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from restaurant_booking.service.shared_kernel.domain.entity import Booking
from restaurant_booking.service.shared_kernel.domain.enum import BookingStatus
from restaurant_booking.service.shared_kernel.domain.value_object import BookingSlot


class IBookingResolutionRepo(ABC):
    @abstractmethod
    async def set_lock_timeout(self, *, timeout_ms: int) -> None:
        """Bound every lock wait in the current transaction."""

    @abstractmethod
    async def get_for_update(self, *, booking_id: UUID) -> Booking | None:
        """Load the booking and row-lock it until the transaction ends."""

    @abstractmethod
    async def lock_slot(self, *, slot: BookingSlot) -> None:
        """
        Serialize resolutions of the same slot until the transaction ends.

        Two bookings of one slot are different rows, so the row lock alone does
        not stop both from passing the conflict check concurrently.
        """

    @abstractmethod
    async def update_status(self, *, booking_id: UUID, status: BookingStatus) -> Booking:
        pass

    @abstractmethod
    async def exists_confirmed_conflict(self, *, slot: BookingSlot, exclude_booking_id: UUID) -> bool:
        """True if another booking of the slot is already CONFIRMED."""
