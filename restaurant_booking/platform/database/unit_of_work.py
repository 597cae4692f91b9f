"""
Unit of Work - owns one database session and one transaction.

- The UoW opens the session on enter and always rolls back and closes it on exit
  (a no-op after a successful commit)
- Repositories share the UoW session, so every write inside the block is atomic
- Store failures surface as StoreError; callers never see driver exceptions
"""

from __future__ import annotations

import abc
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from types import TracebackType
from typing import TYPE_CHECKING, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_booking.platform.exception.exceptions import StoreError
from restaurant_booking.platform.logging.loguru_io import Logger


if TYPE_CHECKING:
    from restaurant_booking.service.intake.app.interface.i_booking_command_repo import (
        IBookingCommandRepo,
    )
    from restaurant_booking.service.resolver.app.interface.i_booking_resolution_repo import (
        IBookingResolutionRepo,
    )


STORE_FAILURES = (SQLAlchemyError, OSError)


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow_factory() as uow:
            booking = await uow.booking_command_repo.create(booking=booking)
            await uow.commit()
    """

    booking_command_repo: IBookingCommandRepo
    booking_resolution_repo: IBookingResolutionRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.rollback()

    async def commit(self) -> None:
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(
        self, *, session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]]
    ) -> None:
        self.session_factory = session_factory
        self.session: AsyncSession | None = None
        self._exit_stack: AsyncExitStack | None = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        from restaurant_booking.service.intake.driven_adapter.repo.booking_command_repo_impl import (
            BookingCommandRepoImpl,
        )
        from restaurant_booking.service.resolver.driven_adapter.repo.booking_resolution_repo_impl import (
            BookingResolutionRepoImpl,
        )

        self._exit_stack = AsyncExitStack()
        try:
            self.session = await self._exit_stack.enter_async_context(self.session_factory())
        except STORE_FAILURES as e:
            await self._exit_stack.aclose()
            raise StoreError(f'Booking store unavailable: {type(e).__name__}') from e

        self.booking_command_repo = BookingCommandRepoImpl(session=self.session)
        self.booking_resolution_repo = BookingResolutionRepoImpl(session=self.session)

        await super().__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            if self._exit_stack is not None:
                await self._exit_stack.aclose()
            self._exit_stack = None
            self.session = None

        if isinstance(exc, STORE_FAILURES):
            raise StoreError(f'Booking store failure: {type(exc).__name__}: {exc}') from exc

    async def _commit(self) -> None:
        if self.session is None:
            raise RuntimeError('commit() outside of "async with uow"')
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is None:
            return
        try:
            await self.session.rollback()
        except STORE_FAILURES as e:
            # Connection already gone; the server aborts the transaction on its side
            Logger.base.warning(f'⚠️ [UOW] Rollback failed: {type(e).__name__}: {e}')
