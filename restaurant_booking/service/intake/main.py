"""
Intake Service - Main Application
Accepts booking requests over HTTP, persists them as CREATED and publishes BOOKING_CREATED.
"""

from contextlib import asynccontextmanager

import anyio.to_thread
from fastapi import FastAPI
import uvicorn

from restaurant_booking.platform.app_factory import create_app
from restaurant_booking.platform.config.core_setting import settings
from restaurant_booking.platform.config.di import cleanup, container
from restaurant_booking.platform.config.wire_modules import WIRE_MODULES
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.platform.message_queue.kafka_topic_initializer import (
    KafkaTopicInitializer,
)
from restaurant_booking.platform.observability.tracing import TracingConfig


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Manage application lifespan: startup and shutdown"""
    Logger.base.info('🚀 [Intake Service] Starting up...')

    tracing = TracingConfig(service_name=settings.SERVICE_NAME)
    tracing.setup()
    Logger.base.info('📊 [Intake Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Intake Service] Dependency injection wired')

    # Create topics before the first publish (AdminClient is blocking)
    topics_ready = await anyio.to_thread.run_sync(
        KafkaTopicInitializer(config=settings).ensure_topics_exist
    )
    if not topics_ready:
        Logger.base.warning('⚠️ [Intake Service] Kafka topics not confirmed; publishes may fail')

    tracing.instrument_sqlalchemy(engine=container.database().engine)
    Logger.base.info('🗄️ [Intake Service] Database engine ready + instrumented')

    Logger.base.info('✅ [Intake Service] Startup complete')

    yield

    Logger.base.info('🛑 [Intake Service] Shutting down...')

    await cleanup()
    Logger.base.info('🗄️ [Intake Service] Publisher and database closed')

    tracing.shutdown()
    container.unwire()

    Logger.base.info('👋 [Intake Service] Shutdown complete')


app = create_app(lifespan=lifespan)


def run() -> None:
    uvicorn.run(
        'restaurant_booking.service.intake.main:app',
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_config=None,  # stdlib logging is intercepted into loguru
    )


if __name__ == '__main__':
    run()
