from typing import Any, Callable, List, Optional
from unittest.mock import Mock

from confluent_kafka import KafkaError, KafkaException
import orjson
import pytest

from restaurant_booking.platform.message_queue.base_kafka_consumer import (
    BaseKafkaConsumer,
    MessageHandler,
)


class FakeMessage:
    def __init__(self, *, value: bytes, partition: int = 0, offset: int = 0) -> None:
        self._value = value
        self._partition = partition
        self._offset = offset

    def topic(self) -> str:
        return 'orders'

    def partition(self) -> int:
        return self._partition

    def offset(self) -> int:
        return self._offset

    def key(self) -> bytes:
        return b'key-1'

    def value(self) -> bytes:
        return self._value


class FakeProducer:
    """Acknowledges (or fails) every produced message on flush."""

    def __init__(self, *, delivery_error: Optional[KafkaError] = None) -> None:
        self.delivery_error = delivery_error
        self.produced: List[dict[str, Any]] = []
        self._callbacks: List[Callable] = []

    def produce(self, *, topic: str, key: bytes, value: bytes, on_delivery: Callable) -> None:
        self.produced.append({'topic': topic, 'key': key, 'value': value})
        self._callbacks.append(on_delivery)

    def flush(self, timeout: float = 0) -> int:
        for callback in self._callbacks:
            callback(self.delivery_error, None)
        self._callbacks.clear()
        return 0


class RecordingConsumer(BaseKafkaConsumer):
    def __init__(self) -> None:
        super().__init__(
            service_name='test-service',
            consumer_config={'group.id': 'test-group'},
            producer_config={},
            dlq_topic='orders-dlq',
            instance_id='test-1',
        )

    def _get_topic_handlers(self) -> dict[str, MessageHandler]:
        return {}

    def _initialize_dependencies(self) -> None:
        pass


@pytest.fixture
def consumer() -> RecordingConsumer:
    return RecordingConsumer()


@pytest.mark.unit
class TestOffsetTracking:
    def test_next_offset_is_committed(self, consumer: RecordingConsumer) -> None:
        # Arrange
        consumer.consumer = Mock()
        for offset in (3, 4, 5):
            consumer._track_offset(FakeMessage(value=b'{}', partition=1, offset=offset))

        # Act
        consumer._maybe_commit_offsets(force=True)

        # Assert
        [call] = consumer.consumer.commit.call_args_list
        [partition] = call.kwargs['offsets']
        assert (partition.topic, partition.partition, partition.offset) == ('orders', 1, 6)
        assert consumer._pending_offsets == {}

    def test_offset_never_moves_backwards(self, consumer: RecordingConsumer) -> None:
        consumer._track_offset(FakeMessage(value=b'{}', offset=9))
        consumer._track_offset(FakeMessage(value=b'{}', offset=2))

        assert consumer._pending_offsets == {('orders', 0): 10}

    def test_failed_commit_keeps_offsets(self, consumer: RecordingConsumer) -> None:
        consumer.consumer = Mock()
        consumer.consumer.commit.side_effect = KafkaException(KafkaError(KafkaError._TRANSPORT))
        consumer._track_offset(FakeMessage(value=b'{}', offset=0))

        consumer._maybe_commit_offsets(force=True)

        assert consumer._pending_offsets == {('orders', 0): 1}

    def test_nothing_committed_before_interval(self, consumer: RecordingConsumer) -> None:
        consumer.consumer = Mock()
        consumer._track_offset(FakeMessage(value=b'{}', offset=0))

        consumer._maybe_commit_offsets()

        consumer.consumer.commit.assert_not_called()


@pytest.mark.unit
class TestSendToDlq:
    def test_dlq_message_carries_origin_and_error(self, consumer: RecordingConsumer) -> None:
        # Arrange
        producer = FakeProducer()
        consumer.producer = producer  # type: ignore[assignment]
        msg = FakeMessage(value=orjson.dumps({'booking_id': 'b-1'}), partition=2, offset=17)

        # Act
        delivered = consumer._send_to_dlq(
            msg=msg,  # type: ignore[arg-type]
            error=ValueError('bad payload'),
            retry_count=1,
        )

        # Assert
        assert delivered
        [produced] = producer.produced
        assert produced['topic'] == 'orders-dlq'
        assert produced['key'] == b'key-1'
        body = orjson.loads(produced['value'])
        assert body['original_message'] == {'booking_id': 'b-1'}
        assert body['original_topic'] == 'orders'
        assert body['original_partition'] == 2
        assert body['original_offset'] == 17
        assert body['error'] == 'ValueError: bad payload'
        assert body['retry_count'] == 1

    def test_undecodable_original_is_kept_as_hex(self, consumer: RecordingConsumer) -> None:
        producer = FakeProducer()
        consumer.producer = producer  # type: ignore[assignment]

        consumer._send_to_dlq(
            msg=FakeMessage(value=b'\xff\x00'),  # type: ignore[arg-type]
            error=ValueError('x'),
            retry_count=1,
        )

        body = orjson.loads(producer.produced[0]['value'])
        assert body['original_message'] == {'raw': 'ff00'}

    def test_delivery_error_is_reported(self, consumer: RecordingConsumer) -> None:
        consumer.producer = FakeProducer(  # type: ignore[assignment]
            delivery_error=KafkaError(KafkaError._MSG_TIMED_OUT)
        )

        delivered = consumer._send_to_dlq(
            msg=FakeMessage(value=b'{}'),  # type: ignore[arg-type]
            error=ValueError('x'),
            retry_count=3,
        )

        assert not delivered



@pytest.mark.unit
class TestRunLoopGuard:
    def test_run_loop_without_consumer_raises(self, consumer: RecordingConsumer) -> None:
        consumer.running = True

        with pytest.raises(RuntimeError, match='call start'):
            consumer._run_loop({})
