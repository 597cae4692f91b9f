"""
Standalone Resolver Consumer Entry Point

Usage:
    booking-resolver
    python -m restaurant_booking.service.resolver.driving_adapter.mq_consumer.start_resolver_consumer
"""

import signal

from anyio.from_thread import start_blocking_portal

from restaurant_booking.platform.config.core_setting import settings
from restaurant_booking.platform.config.di import cleanup, container
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.platform.message_queue.kafka_constant_builder import ServiceNames
from restaurant_booking.platform.message_queue.kafka_topic_initializer import (
    KafkaTopicInitializer,
)
from restaurant_booking.platform.observability.tracing import TracingConfig
from restaurant_booking.service.resolver.driving_adapter.mq_consumer.booking_resolver_mq_consumer import (
    BookingResolverMqConsumer,
)


async def _engine_for_portal_loop():
    # The engine is bound to the loop that first uses it
    return container.database().engine


def main() -> None:
    Logger.base.info('🚀 [Resolver Consumer] Starting...')

    tracing = TracingConfig(service_name=ServiceNames.RESOLVER_SERVICE)
    tracing.setup()
    Logger.base.info('📊 [Resolver Consumer] OpenTelemetry configured')

    if not KafkaTopicInitializer(config=settings).ensure_topics_exist():
        Logger.base.warning('⚠️ [Resolver Consumer] Topics not confirmed; subscribe will retry')

    consumer = BookingResolverMqConsumer(config=settings)

    with start_blocking_portal() as portal:
        consumer.set_portal(portal)

        tracing.instrument_sqlalchemy(engine=portal.call(_engine_for_portal_loop))
        Logger.base.info('🗄️ [Resolver Consumer] Database engine ready + instrumented')

        def shutdown_handler(signum, frame):
            Logger.base.info(f'🛑 [Resolver Consumer] Received signal {signum}')
            consumer.request_stop()

        signal.signal(signal.SIGINT, shutdown_handler)
        signal.signal(signal.SIGTERM, shutdown_handler)

        try:
            Logger.base.info('✅ [Resolver Consumer] Starting consumer...')
            consumer.start()
        finally:
            portal.call(cleanup)
            Logger.base.info('🗄️ [Resolver Consumer] Database disposed')

            tracing.shutdown()
            Logger.base.info('📊 [Resolver Consumer] Tracing shutdown complete')


if __name__ == '__main__':
    main()
