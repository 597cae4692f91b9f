from uuid import UUID

from sqlalchemy import select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.service.resolver.app.interface import IBookingResolutionRepo
from restaurant_booking.service.shared_kernel.domain.entity import Booking
from restaurant_booking.service.shared_kernel.domain.enum import BookingStatus
from restaurant_booking.service.shared_kernel.domain.value_object import BookingSlot
from restaurant_booking.service.shared_kernel.driven_adapter.model.booking_model import (
    BookingModel,
)


class BookingResolutionRepoImpl(IBookingResolutionRepo):
    """PostgreSQL row lock + transaction-scoped advisory lock on the slot."""

    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def set_lock_timeout(self, *, timeout_ms: int) -> None:
        # SET does not take bind parameters
        await self.session.execute(text(f"SET LOCAL lock_timeout = '{int(timeout_ms)}ms'"))

    @Logger.io
    async def get_for_update(self, *, booking_id: UUID) -> Booking | None:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        db_booking = result.scalar_one_or_none()
        return db_booking.to_entity() if db_booking else None

    @Logger.io
    async def lock_slot(self, *, slot: BookingSlot) -> None:
        await self.session.execute(
            text('SELECT pg_advisory_xact_lock(hashtextextended(:lock_key, 0))'),
            {'lock_key': slot.lock_key},
        )

    @Logger.io
    async def update_status(self, *, booking_id: UUID, status: BookingStatus) -> Booking:
        # updated_at is refreshed by trg_booking_updated_at
        result = await self.session.execute(
            update(BookingModel)
            .where(BookingModel.id == booking_id)
            .values(status=status.value)
            .returning(BookingModel)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one().to_entity()

    @Logger.io
    async def exists_confirmed_conflict(self, *, slot: BookingSlot, exclude_booking_id: UUID) -> bool:
        result = await self.session.execute(
            select(BookingModel.id)
            .where(
                BookingModel.resource_id == slot.resource_id,
                BookingModel.booking_date == slot.date,
                BookingModel.booking_time == slot.time,
                BookingModel.status == BookingStatus.CONFIRMED.value,
                BookingModel.id != exclude_booking_id,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
