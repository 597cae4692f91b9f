"""
Test Configuration and Fixtures

- Environment is set before any application import (settings are read at import time)
- Unit tests (@pytest.mark.unit) never touch PostgreSQL or Kafka
- Every other test gets a migrated, truncated PostgreSQL database and is
  skipped when the server is unreachable
"""

# =============================================================================
# Environment setup MUST happen before any application import
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    if worker_id == 'master':
        os.environ['POSTGRES_DB'] = 'booking_test_db'
    else:
        os.environ['POSTGRES_DB'] = f'booking_test_db_{worker_id}'

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ.setdefault('DB_POOL_SIZE', '4')
    os.environ.setdefault('DB_POOL_MAX_OVERFLOW', '4')
    os.environ.setdefault('RESOLVER_RETRY_BACKOFF_SECONDS', '0')


_early_setup_test_environment()

import asyncio  # noqa: E402
from collections.abc import AsyncGenerator, Generator  # noqa: E402

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from dotenv import load_dotenv  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import text  # noqa: E402
from sqlalchemy.exc import SQLAlchemyError  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402

from restaurant_booking.platform.constant.path import ALEMBIC_INI  # noqa: E402
from restaurant_booking.platform.database.orm_db_setting import Database  # noqa: E402


# =============================================================================
# Database Configuration
# =============================================================================
def _get_db_config() -> dict[str, str]:
    env_file = '.env' if Path('.env').exists() else '.env.example'
    load_dotenv(env_file)

    return {
        'user': os.getenv('POSTGRES_USER', 'postgres'),
        'password': os.getenv('POSTGRES_PASSWORD', 'postgres'),
        'host': os.getenv('POSTGRES_SERVER', 'localhost'),
        'port': os.getenv('POSTGRES_PORT', '5432'),
        'test_db': os.environ['POSTGRES_DB'],
    }


def _get_test_database_url() -> str:
    cfg = _get_db_config()
    return (
        f'postgresql+asyncpg://{cfg["user"]}:{cfg["password"]}'
        f'@{cfg["host"]}:{cfg["port"]}/{cfg["test_db"]}'
    )


async def _setup_test_database() -> None:
    db_url = _get_test_database_url()
    cfg = _get_db_config()

    postgres_url = db_url.replace(f'/{cfg["test_db"]}', '/postgres')
    engine = create_async_engine(postgres_url, isolation_level='AUTOCOMMIT')
    try:
        async with engine.begin() as conn:
            result = await conn.execute(
                text('SELECT 1 FROM pg_database WHERE datname = :name'), {'name': cfg['test_db']}
            )
            if not result.fetchone():
                await conn.execute(text(f'CREATE DATABASE "{cfg["test_db"]}"'))
    finally:
        await engine.dispose()

    reset_engine = create_async_engine(db_url)
    try:
        async with reset_engine.begin() as conn:
            await conn.execute(text('DROP SCHEMA public CASCADE'))
            await conn.execute(text('CREATE SCHEMA public'))
    finally:
        await reset_engine.dispose()


def _run_migrations() -> None:
    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.set_main_option('sqlalchemy.url', _get_test_database_url())
    command.upgrade(alembic_cfg, 'head')


async def _truncate_bookings() -> None:
    engine = create_async_engine(_get_test_database_url())
    try:
        async with engine.begin() as conn:
            await conn.execute(text('TRUNCATE booking'))
    finally:
        await engine.dispose()


# =============================================================================
# Pytest Hooks
# =============================================================================
def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        markers = [m.name for m in item.iter_markers()]
        if 'unit' not in markers:
            item.fixturenames.append('clean_database')


# =============================================================================
# Integration Test Fixtures
# =============================================================================
@pytest.fixture(scope='session')
def migrated_database() -> Generator[str, None, None]:
    """Create the test database and run alembic once per session."""
    try:
        asyncio.run(_setup_test_database())
    except (OSError, SQLAlchemyError) as e:
        pytest.skip(f'PostgreSQL unreachable: {type(e).__name__}: {e}')
    _run_migrations()
    yield _get_test_database_url()


@pytest.fixture(scope='function')
async def clean_database(migrated_database: str) -> AsyncGenerator[None, None]:
    await _truncate_bookings()
    yield


@pytest.fixture
async def database(migrated_database: str) -> AsyncGenerator[Database, None]:
    db = Database(database_url=migrated_database)
    yield db
    await db.dispose()
