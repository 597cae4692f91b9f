"""
Unit tests for BookingResolverMqConsumer message handling.

Messages are fed straight into _process_message, the per-lane entry point,
so retry, dead-lettering and offset tracking are exercised without a broker.
"""

from collections.abc import Generator
import datetime as dt
from typing import Optional
from unittest.mock import AsyncMock, Mock

from anyio.from_thread import BlockingPortal, start_blocking_portal
import orjson
import pytest
from uuid_utils.compat import uuid7

from restaurant_booking.platform.config.core_setting import Settings
from restaurant_booking.platform.exception.exceptions import (
    ConflictTransactionError,
    NotFoundError,
)
from restaurant_booking.platform.message_queue.booking_event_codec import encode_booking_created
from restaurant_booking.service.resolver.app.dto import ResolutionResult
from restaurant_booking.service.resolver.driving_adapter.mq_consumer.booking_resolver_mq_consumer import (
    BookingResolverMqConsumer,
)
from restaurant_booking.service.shared_kernel.domain.domain_event import BookingCreatedEvent
from restaurant_booking.service.shared_kernel.domain.entity import Booking


TOPIC = 'booking-events'


class FakeMessage:
    def __init__(
        self, *, value: Optional[bytes], key: bytes = b'key', partition: int = 0, offset: int = 0
    ) -> None:
        self._value = value
        self._key = key
        self._partition = partition
        self._offset = offset

    def topic(self) -> str:
        return TOPIC

    def partition(self) -> int:
        return self._partition

    def offset(self) -> int:
        return self._offset

    def key(self) -> bytes:
        return self._key

    def value(self) -> Optional[bytes]:
        return self._value

    def error(self) -> None:
        return None


def _booking() -> Booking:
    return Booking.create(
        id=uuid7(),
        resource_id='resource_1',
        date=dt.date(2025, 12, 1),
        time=dt.time(18, 0),
        party_size=4,
    )


def _booking_created_message(booking: Booking, **kwargs) -> FakeMessage:
    value = encode_booking_created(BookingCreatedEvent.from_booking(booking))
    return FakeMessage(value=value, key=str(booking.id).encode(), **kwargs)


@pytest.fixture
def portal() -> Generator[BlockingPortal, None, None]:
    with start_blocking_portal() as blocking_portal:
        yield blocking_portal


@pytest.fixture
def resolve_use_case() -> AsyncMock:
    use_case = AsyncMock()
    use_case.resolve = AsyncMock(
        side_effect=lambda *, booking_id: ResolutionResult(booking=_booking(), changed=True)
    )
    return use_case


@pytest.fixture
def consumer(portal: BlockingPortal, resolve_use_case: AsyncMock) -> BookingResolverMqConsumer:
    config = Settings(
        KAFKA_BOOKING_EVENTS_TOPIC=TOPIC,
        RESOLVER_MAX_ATTEMPTS=3,
        RESOLVER_RETRY_BACKOFF_SECONDS=0,
    )
    resolver_consumer = BookingResolverMqConsumer(config=config, resolve_use_case=resolve_use_case)
    resolver_consumer.set_portal(portal)
    resolver_consumer._send_to_dlq = Mock(return_value=True)
    return resolver_consumer


def _process(consumer: BookingResolverMqConsumer, msg: FakeMessage) -> None:
    handler = consumer._get_topic_handlers()[TOPIC]
    consumer._process_message(msg, handler)


@pytest.mark.unit
class TestHandleBookingCreated:
    def test_success__resolves_then_tracks_offset(
        self, consumer: BookingResolverMqConsumer, resolve_use_case: AsyncMock
    ) -> None:
        # Arrange
        booking = _booking()
        msg = _booking_created_message(booking, partition=2, offset=41)

        # Act
        _process(consumer, msg)

        # Assert
        resolve_use_case.resolve.assert_awaited_once_with(booking_id=booking.id)
        assert consumer._pending_offsets == {(TOPIC, 2): 42}
        consumer._send_to_dlq.assert_not_called()

    def test_transient_failure__retried_then_acknowledged(
        self, consumer: BookingResolverMqConsumer, resolve_use_case: AsyncMock
    ) -> None:
        # Arrange - two rolled-back transactions, then success
        booking = _booking()
        resolve_use_case.resolve.side_effect = [
            ConflictTransactionError('lock timeout'),
            ConflictTransactionError('lock timeout'),
            ResolutionResult(booking=booking, changed=True),
        ]

        # Act
        _process(consumer, _booking_created_message(booking))

        # Assert
        assert resolve_use_case.resolve.await_count == 3
        assert consumer._pending_offsets == {(TOPIC, 0): 1}
        consumer._send_to_dlq.assert_not_called()

    def test_transient_failure__exhausted_goes_to_dlq(
        self, consumer: BookingResolverMqConsumer, resolve_use_case: AsyncMock
    ) -> None:
        resolve_use_case.resolve.side_effect = ConflictTransactionError('store unreachable')

        _process(consumer, _booking_created_message(_booking(), offset=7))

        assert resolve_use_case.resolve.await_count == 3
        consumer._send_to_dlq.assert_called_once()
        assert consumer._send_to_dlq.call_args.kwargs['retry_count'] == 3
        assert isinstance(consumer._send_to_dlq.call_args.kwargs['error'], ConflictTransactionError)
        assert consumer._pending_offsets == {(TOPIC, 0): 8}

    def test_malformed_payload__dead_lettered_without_retry(
        self, consumer: BookingResolverMqConsumer, resolve_use_case: AsyncMock
    ) -> None:
        _process(consumer, FakeMessage(value=b'{not json'))

        resolve_use_case.resolve.assert_not_awaited()
        consumer._send_to_dlq.assert_called_once()
        assert consumer._send_to_dlq.call_args.kwargs['retry_count'] == 1
        assert consumer._pending_offsets == {(TOPIC, 0): 1}

    def test_unknown_booking__dead_lettered_without_retry(
        self, consumer: BookingResolverMqConsumer, resolve_use_case: AsyncMock
    ) -> None:
        resolve_use_case.resolve.side_effect = NotFoundError('Booking not found')

        _process(consumer, _booking_created_message(_booking()))

        assert resolve_use_case.resolve.await_count == 1
        consumer._send_to_dlq.assert_called_once()

    def test_unknown_event_type__acknowledged_and_ignored(
        self, consumer: BookingResolverMqConsumer, resolve_use_case: AsyncMock
    ) -> None:
        payload = orjson.dumps({'schema_version': 1, 'event_type': 'BOOKING_CANCELLED'})

        _process(consumer, FakeMessage(value=payload, offset=3))

        resolve_use_case.resolve.assert_not_awaited()
        consumer._send_to_dlq.assert_not_called()
        assert consumer._pending_offsets == {(TOPIC, 0): 4}

    def test_dlq_failure__stops_without_acknowledging(
        self, consumer: BookingResolverMqConsumer, resolve_use_case: AsyncMock
    ) -> None:
        consumer._send_to_dlq.return_value = False

        _process(consumer, FakeMessage(value=b''))

        assert consumer._pending_offsets == {}
        assert consumer.stop_event.is_set()
        assert consumer._fatal_error is not None

    def test_stopping__message_left_for_redelivery(
        self, consumer: BookingResolverMqConsumer, resolve_use_case: AsyncMock
    ) -> None:
        consumer.request_stop()

        _process(consumer, _booking_created_message(_booking()))

        resolve_use_case.resolve.assert_not_awaited()
        assert consumer._pending_offsets == {}


@pytest.mark.unit
class TestConsumerConfiguration:
    def test_subscribes_booking_events_with_fixed_group(
        self, consumer: BookingResolverMqConsumer
    ) -> None:
        assert list(consumer._get_topic_handlers()) == [TOPIC]
        assert consumer.consumer_config['group.id'] == 'booking-service-group'
        assert consumer.consumer_config['enable.auto.commit'] is False
        assert consumer.dlq_topic == 'booking-events-dlq'

    def test_partition_pinned_to_one_lane(self, consumer: BookingResolverMqConsumer) -> None:
        consumer._lanes = ['lane-0', 'lane-1', 'lane-2', 'lane-3']  # type: ignore[list-item]

        lanes = {
            partition: consumer._lane_for(FakeMessage(value=b'', partition=partition))
            for partition in range(8)
        }

        assert lanes[0] == lanes[4] == 'lane-0'
        assert lanes[3] == lanes[7] == 'lane-3'
