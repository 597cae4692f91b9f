"""
Booking Resolver MQ Consumer

Consumes BOOKING_CREATED from the booking events topic and runs the
conflict-resolution transaction for each booking.

- Per-partition ordering and at-least-once acknowledgment come from BaseKafkaConsumer
- ConflictTransactionError is transient: retried in place, then dead-lettered
- Malformed payloads and unknown bookings are dead-lettered without retry
- Unknown event types are acknowledged and skipped
"""

from typing import Dict, Optional

from anyio.from_thread import BlockingPortal
from confluent_kafka import Message
from opentelemetry import trace
from opentelemetry.context import Context

from restaurant_booking.platform.config.core_setting import Settings, settings
from restaurant_booking.platform.config.di import container
from restaurant_booking.platform.exception.exceptions import ConflictTransactionError
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.platform.message_queue.base_kafka_consumer import (
    BaseKafkaConsumer,
    MessageHandler,
)
from restaurant_booking.platform.message_queue.booking_event_codec import (
    decode_booking_created,
    decode_payload,
    trace_context_from_payload,
)
from restaurant_booking.platform.message_queue.kafka_constant_builder import (
    KafkaTopicBuilder,
    ServiceNames,
)
from restaurant_booking.platform.observability.tracing import extract_trace_context
from restaurant_booking.service.resolver.app.command.resolve_booking_use_case import (
    ResolveBookingUseCase,
)
from restaurant_booking.service.resolver.app.dto import ResolutionResult
from restaurant_booking.service.shared_kernel.domain.domain_event import (
    BookingCreatedEvent,
    BookingEventType,
)


class BookingResolverMqConsumer(BaseKafkaConsumer):
    TRANSIENT_ERRORS = (ConflictTransactionError,)

    def __init__(
        self,
        *,
        config: Settings = settings,
        resolve_use_case: Optional[ResolveBookingUseCase] = None,
    ) -> None:
        super().__init__(
            service_name=ServiceNames.RESOLVER_SERVICE,
            consumer_config=config.KAFKA_CONSUMER_CONFIG,
            producer_config=config.KAFKA_PRODUCER_CONFIG,
            dlq_topic=KafkaTopicBuilder.booking_events_dlq(config=config),
            instance_id=config.KAFKA_CONSUMER_INSTANCE_ID,
            max_workers=config.RESOLVER_MAX_WORKERS,
            max_attempts=config.RESOLVER_MAX_ATTEMPTS,
            retry_backoff_seconds=config.RESOLVER_RETRY_BACKOFF_SECONDS,
        )
        self.config = config
        self.portal: Optional[BlockingPortal] = None
        self.resolve_use_case = resolve_use_case
        self.tracer = trace.get_tracer(__name__)

    def set_portal(self, portal: BlockingPortal) -> None:
        """Set BlockingPortal for calling async use cases from the lane threads"""
        self.portal = portal

    def _initialize_dependencies(self) -> None:
        if self.resolve_use_case is None:
            self.resolve_use_case = ResolveBookingUseCase(
                uow_factory=container.unit_of_work,
                lock_timeout_ms=self.config.RESOLVER_LOCK_TIMEOUT_MS,
            )

    def _get_topic_handlers(self) -> Dict[str, MessageHandler]:
        return {KafkaTopicBuilder.booking_events(config=self.config): self._handle_booking_event}

    # ========== Message Handlers ==========

    @Logger.io
    def _handle_booking_event(self, msg: Message) -> Optional[ResolutionResult]:
        payload = decode_payload(msg.value())

        event_type = payload.get('event_type')
        if event_type != BookingEventType.BOOKING_CREATED.value:
            Logger.base.warning(
                f'⏭️ [RESOLVER] Unknown event_type {event_type!r} at '
                f'{msg.topic()}[{msg.partition()}]@{msg.offset()}, skipped'
            )
            return None

        event = decode_booking_created(payload)
        parent = extract_trace_context(headers=trace_context_from_payload(payload))

        if self.portal is None:
            raise RuntimeError('BlockingPortal not set; call set_portal() before start()')
        result = self.portal.call(self._resolve, event, parent, msg.partition())

        Logger.base.info(
            f'📥 [RESOLVER-{self.instance_id}] {event.booking_id} '
            f'partition={msg.partition()} -> {result.outcome}'
        )
        return result

    async def _resolve(
        self, event: BookingCreatedEvent, parent: Context, partition: int
    ) -> ResolutionResult:
        # Runs on the portal loop; the span is opened here so use-case spans nest under it
        if self.resolve_use_case is None:
            raise RuntimeError('Resolve use case not initialized')
        with self.tracer.start_as_current_span(
            'consumer.resolve_booking',
            context=parent,
            kind=trace.SpanKind.CONSUMER,
            attributes={
                'messaging.system': 'kafka',
                'messaging.operation': 'process',
                'messaging.kafka.partition': partition,
                'booking.id': str(event.booking_id),
            },
        ):
            return await self.resolve_use_case.resolve(booking_id=event.booking_id)
