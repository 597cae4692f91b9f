"""
Kafka event publisher built on confluent-kafka's asyncio producer.

- One producer per publisher instance, owned by the DI container
- Idempotent producer with acks=all; publish() returns only after the broker acknowledged
- Failures (broker unreachable, delivery error, timeout) surface as ChannelPublishError
"""

import asyncio

from confluent_kafka import KafkaException
from confluent_kafka.experimental.aio import AIOProducer
from opentelemetry import trace

from restaurant_booking.platform.config.core_setting import Settings
from restaurant_booking.platform.exception.exceptions import ChannelPublishError
from restaurant_booking.platform.logging.loguru_io import Logger


class KafkaEventPublisher:
    def __init__(self, *, config: Settings) -> None:
        self._config = config
        self._producer: AIOProducer | None = None
        self.tracer = trace.get_tracer(__name__)

    def _get_producer(self) -> AIOProducer:
        if self._producer is None:
            self._producer = AIOProducer(self._config.KAFKA_PRODUCER_CONFIG)
        return self._producer

    async def publish(self, *, topic: str, key: str, value: bytes, event_type: str) -> None:
        """
        Publish one message and wait for the broker acknowledgment.

        The key selects the partition, so every event for one booking lands on
        the same partition and is consumed in order.

        Raises:
            ChannelPublishError: when the message is not acknowledged in time
        """
        with self.tracer.start_as_current_span(
            'kafka.publish',
            attributes={
                'messaging.system': 'kafka',
                'messaging.destination': topic,
                'messaging.destination_kind': 'topic',
                'messaging.kafka.message_key': key,
                'event.type': event_type,
            },
        ):
            try:
                producer = self._get_producer()
                # produce() hands the message to the batching buffer and returns the delivery future
                delivery = await producer.produce(topic=topic, key=key.encode('utf-8'), value=value)
                message = await asyncio.wait_for(
                    delivery, timeout=self._config.KAFKA_PUBLISH_TIMEOUT_SECONDS
                )
                if message is not None and message.error():
                    raise KafkaException(message.error())
            except (KafkaException, BufferError, TimeoutError) as e:
                raise ChannelPublishError(
                    f'Failed to publish {event_type} for {key}: {type(e).__name__}: {e}',
                    booking_id=key,
                ) from e

            Logger.base.info(
                f'📤 [PUBLISH] {event_type} key={key} -> {topic} '
                f'(partition={message.partition() if message is not None else "?"})'
            )

    async def close(self) -> None:
        if self._producer is None:
            return
        try:
            await self._producer.flush()
            await self._producer.close()
        finally:
            self._producer = None
        Logger.base.info('📤 [PUBLISH] Producer closed')
