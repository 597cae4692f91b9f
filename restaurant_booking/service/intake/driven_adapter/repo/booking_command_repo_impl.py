from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.service.intake.app.interface.i_booking_command_repo import (
    IBookingCommandRepo,
)
from restaurant_booking.service.shared_kernel.domain.entity import Booking
from restaurant_booking.service.shared_kernel.domain.enum import BookingStatus
from restaurant_booking.service.shared_kernel.driven_adapter.model.booking_model import (
    BookingModel,
)


class BookingCommandRepoImpl(IBookingCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def create(self, *, booking: Booking) -> Booking:
        db_booking = BookingModel.from_entity(booking)
        self.session.add(db_booking)
        await self.session.flush()
        # created_at/updated_at come from server defaults
        await self.session.refresh(db_booking)
        return db_booking.to_entity()

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        db_booking = await self.session.get(BookingModel, booking_id)
        return db_booking.to_entity() if db_booking else None

    @Logger.io
    async def list_created_before(self, *, cutoff: datetime, limit: int) -> List[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.status == BookingStatus.CREATED.value,
                BookingModel.created_at < cutoff,
            )
            .order_by(BookingModel.created_at.asc())
            .limit(limit)
        )
        return [db_booking.to_entity() for db_booking in result.scalars().all()]
