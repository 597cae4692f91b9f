from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from restaurant_booking.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from restaurant_booking.platform.exception.exceptions import StoreError


def _session_factory(session):
    @asynccontextmanager
    async def factory():
        yield session

    return factory


@pytest.mark.unit
class TestSqlAlchemyUnitOfWork:
    @pytest.mark.asyncio
    async def test_commit_outside_block_raises(self) -> None:
        uow = SqlAlchemyUnitOfWork(session_factory=_session_factory(AsyncMock()))

        with pytest.raises(RuntimeError, match='outside of'):
            await uow.commit()

    @pytest.mark.asyncio
    async def test_leaving_block_without_commit_rolls_back(self) -> None:
        # Arrange
        session = AsyncMock()

        # Act
        async with SqlAlchemyUnitOfWork(session_factory=_session_factory(session)):
            pass

        # Assert
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_driver_error_surfaces_as_store_error(self) -> None:
        session = AsyncMock()

        with pytest.raises(StoreError):
            async with SqlAlchemyUnitOfWork(session_factory=_session_factory(session)):
                raise OperationalError('SELECT 1', {}, ConnectionRefusedError())

        session.rollback.assert_awaited_once()
