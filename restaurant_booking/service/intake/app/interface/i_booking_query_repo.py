from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from restaurant_booking.service.shared_kernel.domain.entity import Booking


class IBookingQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        pass

    @abstractmethod
    async def list_recent(self, *, limit: int) -> List[Booking]:
        """Most recently created first."""
