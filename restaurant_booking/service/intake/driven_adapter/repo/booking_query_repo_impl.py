from contextlib import AbstractAsyncContextManager
from typing import Callable, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_booking.platform.database.unit_of_work import STORE_FAILURES
from restaurant_booking.platform.exception.exceptions import StoreError
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.service.intake.app.interface.i_booking_query_repo import IBookingQueryRepo
from restaurant_booking.service.shared_kernel.domain.entity import Booking
from restaurant_booking.service.shared_kernel.driven_adapter.model.booking_model import (
    BookingModel,
)


class BookingQueryRepoImpl(IBookingQueryRepo):
    """Read-only queries; each call uses its own short-lived session."""

    def __init__(
        self, session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]]
    ) -> None:
        self.session_factory = session_factory

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        try:
            async with self.session_factory() as session:
                db_booking = await session.get(BookingModel, booking_id)
                return db_booking.to_entity() if db_booking else None
        except STORE_FAILURES as e:
            raise StoreError(f'Booking store unavailable: {type(e).__name__}') from e

    @Logger.io
    async def list_recent(self, *, limit: int) -> List[Booking]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(BookingModel)
                    .order_by(BookingModel.created_at.desc(), BookingModel.id.desc())
                    .limit(limit)
                )
                return [db_booking.to_entity() for db_booking in result.scalars().all()]
        except STORE_FAILURES as e:
            raise StoreError(f'Booking store unavailable: {type(e).__name__}') from e
