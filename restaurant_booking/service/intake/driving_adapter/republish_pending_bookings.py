"""
Republish BOOKING_CREATED for bookings stuck in CREATED.

A booking stays CREATED when its publish failed after the commit. Run this on a
schedule (cron, k8s CronJob):

    booking-republish --older-than 60
"""

import argparse

import anyio

from restaurant_booking.platform.config.core_setting import settings
from restaurant_booking.platform.config.di import cleanup, container
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.service.intake.app.command.republish_booking_event_use_case import (
    RepublishBookingEventUseCase,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        '--older-than',
        type=int,
        default=settings.REPUBLISH_STALE_AFTER_SECONDS,
        help='only bookings created more than this many seconds ago',
    )
    parser.add_argument('--limit', type=int, default=settings.BOOKING_LIST_PAGE_SIZE)
    return parser.parse_args(argv)


async def republish_pending(*, older_than_seconds: int, limit: int) -> int:
    use_case = RepublishBookingEventUseCase(
        uow_factory=container.unit_of_work,
        event_publisher=container.booking_event_publisher(),
    )
    try:
        return await use_case.republish_stale(older_than_seconds=older_than_seconds, limit=limit)
    finally:
        await cleanup()


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    count = anyio.run(
        lambda: republish_pending(older_than_seconds=args.older_than, limit=args.limit)
    )
    Logger.base.info(f'✅ [REPUBLISH] Done, {count} bookings republished')


if __name__ == '__main__':
    main()
