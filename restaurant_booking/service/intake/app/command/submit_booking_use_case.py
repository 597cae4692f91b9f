import datetime as dt
from typing import Any, Callable, Self

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils.compat import uuid7

from restaurant_booking.platform.config.di import Container
from restaurant_booking.platform.database.unit_of_work import AbstractUnitOfWork
from restaurant_booking.platform.exception.exceptions import ChannelPublishError
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.platform.metrics.booking_metrics import metrics
from restaurant_booking.service.intake.app.interface import IBookingEventPublisher
from restaurant_booking.service.shared_kernel.domain.domain_event import BookingCreatedEvent
from restaurant_booking.service.shared_kernel.domain.entity import Booking


class SubmitBookingUseCase:
    """
    Accept a booking request.

    Flow:
    1. Validate (no side effects on failure)
    2. Persist in CREATED and commit
    3. Publish BOOKING_CREATED keyed by booking id, after the commit
    4. Return the CREATED booking; the resolver decides CONFIRMED/REJECTED later

    A publish failure leaves the committed row in CREATED and raises
    ChannelPublishError; RepublishBookingEventUseCase re-emits the event.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        event_publisher: IBookingEventPublisher,
    ) -> None:
        self.uow_factory = uow_factory
        self.event_publisher = event_publisher
        self.tracer = trace.get_tracer(__name__)

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
    async def submit(
        self,
        *,
        resource_id: Any,
        date: dt.date | None,
        time: dt.time | None,
        party_size: Any,
    ) -> Booking:
        booking_id = uuid7()

        with self.tracer.start_as_current_span(
            'use_case.submit_booking',
            attributes={'booking.id': str(booking_id)},
        ):
            booking = Booking.create(
                id=booking_id,
                resource_id=resource_id,
                date=date,
                time=time,
                party_size=party_size,
            )

            async with self.uow_factory() as uow:
                booking = await uow.booking_command_repo.create(booking=booking)
                await uow.commit()
            metrics.bookings_submitted.inc()

            Logger.base.info(
                f'📝 [SUBMIT] {booking.id} CREATED for {booking.resource_id} '
                f'{booking.date} {booking.time} party={booking.party_size}'
            )

            try:
                await self.event_publisher.publish_booking_created(
                    event=BookingCreatedEvent.from_booking(booking)
                )
            except ChannelPublishError:
                metrics.booking_publish_failures.inc()
                Logger.base.error(
                    f'📤 [SUBMIT] {booking.id} committed but BOOKING_CREATED not published; '
                    f'it stays CREATED until republished'
                )
                raise

            return booking
