import time
from typing import Callable
from uuid import UUID

from opentelemetry import trace

from restaurant_booking.platform.database.unit_of_work import AbstractUnitOfWork
from restaurant_booking.platform.exception.exceptions import (
    ConflictTransactionError,
    NotFoundError,
    StoreError,
)
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.platform.metrics.booking_metrics import metrics
from restaurant_booking.service.resolver.app.dto import ResolutionResult


class ResolveBookingUseCase:
    """
    Conflict-resolution transaction for one booking.

    All steps run in one transaction:
    1. Bound lock waits (SET LOCAL lock_timeout)
    2. Row-lock the booking
    3. Lock the slot, so concurrent resolutions of one slot run one at a time
    4. Terminal booking -> no-op (redelivered event)
    5. CREATED -> CHECKING_AVAILABILITY
    6. Look for another CONFIRMED booking of the slot
    7. CONFIRMED if none, REJECTED otherwise
    8. Commit

    Any store failure rolls everything back and surfaces as
    ConflictTransactionError; the caller must not acknowledge the event.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        lock_timeout_ms: int,
    ) -> None:
        self.uow_factory = uow_factory
        self.lock_timeout_ms = lock_timeout_ms
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def resolve(self, *, booking_id: UUID) -> ResolutionResult:
        started = time.perf_counter()
        with self.tracer.start_as_current_span(
            'use_case.resolve_booking',
            attributes={'booking.id': str(booking_id)},
        ) as span:
            try:
                result = await self._resolve_in_transaction(booking_id=booking_id)
            except StoreError as e:
                metrics.booking_resolution_failures.inc()
                raise ConflictTransactionError(
                    f'Resolution of booking {booking_id} rolled back: {e.message}'
                ) from e

            span.set_attribute('booking.status', result.booking.status.value)
            span.set_attribute('resolution.outcome', result.outcome)
            metrics.record_resolution(
                outcome=result.outcome, duration=time.perf_counter() - started
            )
            return result

    async def _resolve_in_transaction(self, *, booking_id: UUID) -> ResolutionResult:
        async with self.uow_factory() as uow:
            repo = uow.booking_resolution_repo
            await repo.set_lock_timeout(timeout_ms=self.lock_timeout_ms)

            booking = await repo.get_for_update(booking_id=booking_id)
            if booking is None:
                raise NotFoundError(f'Booking {booking_id} not found')

            await repo.lock_slot(slot=booking.slot)

            if booking.status.is_terminal:
                Logger.base.info(f'🔁 [RESOLVE] {booking_id} already {booking.status}, no-op')
                return ResolutionResult(booking=booking, changed=False)

            checking = booking.start_availability_check()
            if checking is not booking:
                checking = await repo.update_status(booking_id=booking_id, status=checking.status)

            has_conflict = await repo.exists_confirmed_conflict(
                slot=booking.slot, exclude_booking_id=booking_id
            )
            decided = checking.resolve(has_conflict=has_conflict)
            resolved = await repo.update_status(booking_id=booking_id, status=decided.status)
            await uow.commit()

        Logger.base.info(
            f'{"✅" if not has_conflict else "⛔"} [RESOLVE] {booking_id} -> {resolved.status} '
            f'({booking.slot.lock_key})'
        )
        return ResolutionResult(booking=resolved, changed=True)
