from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from uuid import UUID

from restaurant_booking.service.shared_kernel.domain.entity import Booking


class IBookingCommandRepo(ABC):
    """Writes and write-side reads for Intake; always bound to a unit-of-work session."""

    @abstractmethod
    async def create(self, *, booking: Booking) -> Booking:
        """Insert the booking; the returned entity carries store-assigned timestamps."""

    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        pass

    @abstractmethod
    async def list_created_before(self, *, cutoff: datetime, limit: int) -> List[Booking]:
        """Bookings still in CREATED that were created before ``cutoff``, oldest first."""
