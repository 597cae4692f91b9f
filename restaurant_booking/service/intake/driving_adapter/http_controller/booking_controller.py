from uuid import UUID

from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.service.intake.app.command.republish_booking_event_use_case import (
    RepublishBookingEventUseCase,
)
from restaurant_booking.service.intake.app.command.submit_booking_use_case import (
    SubmitBookingUseCase,
)
from restaurant_booking.service.intake.app.query.get_booking_use_case import GetBookingUseCase
from restaurant_booking.service.intake.app.query.list_bookings_use_case import (
    ListBookingsUseCase,
)
from restaurant_booking.service.intake.driving_adapter.http_controller.schema.booking_schema import (
    BookingCreateRequest,
    BookingListResponse,
    BookingResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_booking(
    request: BookingCreateRequest,
    use_case: SubmitBookingUseCase = Depends(SubmitBookingUseCase.depends),
) -> BookingResponse:
    with tracer.start_as_current_span('controller.create_booking') as span:
        if request.resource_id:
            span.set_attribute('booking.resource_id', request.resource_id)

        # Status is always CREATED here; the resolver decides the outcome asynchronously
        booking = await use_case.submit(
            resource_id=request.resource_id,
            date=request.date,
            time=request.time,
            party_size=request.party_size,
        )

        span.set_attribute('booking.id', str(booking.id))
        return BookingResponse.from_entity(booking)


@router.get('')
@Logger.io
async def list_bookings(
    use_case: ListBookingsUseCase = Depends(ListBookingsUseCase.depends),
) -> BookingListResponse:
    bookings = await use_case.list_recent()
    return BookingListResponse(
        count=len(bookings),
        bookings=[BookingResponse.from_entity(booking) for booking in bookings],
    )


@router.get('/{booking_id}')
@Logger.io
async def get_booking(
    booking_id: UUID,
    use_case: GetBookingUseCase = Depends(GetBookingUseCase.depends),
) -> BookingResponse:
    booking = await use_case.get_booking(booking_id=booking_id)
    return BookingResponse.from_entity(booking)


@router.post('/{booking_id}/republish', status_code=status.HTTP_202_ACCEPTED)
@Logger.io
async def republish_booking(
    booking_id: UUID,
    use_case: RepublishBookingEventUseCase = Depends(RepublishBookingEventUseCase.depends),
) -> BookingResponse:
    """Re-emit BOOKING_CREATED for a booking whose original publish failed."""
    booking = await use_case.republish(booking_id=booking_id)
    return BookingResponse.from_entity(booking)
