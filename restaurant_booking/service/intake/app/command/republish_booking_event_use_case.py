from datetime import datetime, timedelta, timezone
from typing import Callable, Self
from uuid import UUID

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends

from restaurant_booking.platform.config.di import Container
from restaurant_booking.platform.database.unit_of_work import AbstractUnitOfWork
from restaurant_booking.platform.exception.exceptions import NotFoundError
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.platform.metrics.booking_metrics import metrics
from restaurant_booking.service.intake.app.interface import IBookingEventPublisher
from restaurant_booking.service.shared_kernel.domain.domain_event import BookingCreatedEvent
from restaurant_booking.service.shared_kernel.domain.entity import Booking
from restaurant_booking.service.shared_kernel.domain.enum import BookingStatus


class RepublishBookingEventUseCase:
    """
    Re-emit BOOKING_CREATED for bookings left in CREATED by a failed publish.

    Resolution is idempotent, so publishing twice for the same booking is harmless.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        event_publisher: IBookingEventPublisher,
    ) -> None:
        self.uow_factory = uow_factory
        self.event_publisher = event_publisher

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(Provider[Container.unit_of_work]),
        event_publisher: IBookingEventPublisher = Depends(
            Provide[Container.booking_event_publisher]
        ),
    ) -> Self:
        return cls(uow_factory=uow_factory, event_publisher=event_publisher)

    @Logger.io
    async def republish(self, *, booking_id: UUID) -> Booking:
        async with self.uow_factory() as uow:
            booking = await uow.booking_command_repo.get_by_id(booking_id=booking_id)

        if booking is None:
            raise NotFoundError('Booking not found')

        if booking.status is not BookingStatus.CREATED:
            Logger.base.info(f'🔁 [REPUBLISH] {booking_id} already {booking.status}, skipped')
            return booking

        await self.event_publisher.publish_booking_created(
            event=BookingCreatedEvent.from_booking(booking)
        )
        metrics.booking_events_republished.inc()
        return booking

    @Logger.io
    async def republish_stale(self, *, older_than_seconds: int, limit: int) -> int:
        """Republish every CREATED booking older than the threshold; returns how many."""
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=older_than_seconds)
        async with self.uow_factory() as uow:
            stale = await uow.booking_command_repo.list_created_before(cutoff=cutoff, limit=limit)

        for booking in stale:
            await self.event_publisher.publish_booking_created(
                event=BookingCreatedEvent.from_booking(booking)
            )
            metrics.booking_events_republished.inc()

        Logger.base.info(f'🔁 [REPUBLISH] {len(stale)} stale CREATED bookings republished')
        return len(stale)
