from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from restaurant_booking.platform.config.di import Container
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.service.intake.app.interface import IBookingQueryRepo
from restaurant_booking.service.shared_kernel.domain.entity import Booking


class ListBookingsUseCase:
    def __init__(self, *, booking_query_repo: IBookingQueryRepo, page_size: int) -> None:
        self.booking_query_repo = booking_query_repo
        self.page_size = page_size

    @classmethod
    @inject
    def depends(
        cls,
        booking_query_repo: IBookingQueryRepo = Depends(Provide[Container.booking_query_repo]),
        page_size: int = Depends(Provide[Container.config_service.provided.BOOKING_LIST_PAGE_SIZE]),
    ) -> Self:
        return cls(booking_query_repo=booking_query_repo, page_size=page_size)

    @Logger.io
    async def list_recent(self) -> List[Booking]:
        return await self.booking_query_repo.list_recent(limit=self.page_size)
