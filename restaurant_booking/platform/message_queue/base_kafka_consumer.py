"""
Kafka consumer loop with at-least-once delivery and per-partition ordering.

Flow per message:
    poll -> lane of its partition -> handler (retried on transient errors)
         -> track offset -> batch commit from the poll thread

Guarantees:
- Messages of one partition run sequentially on one single-thread lane;
  different partitions run concurrently on different lanes
- An offset is tracked only after its handler returned, so a crash or a
  shutdown before that point redelivers the message
- Non-transient failures, and transient ones that exhaust their attempts, are
  published to the DLQ before the offset is tracked; if the DLQ publish fails
  the consumer stops without acknowledging
"""

from abc import ABC, abstractmethod
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from confluent_kafka import Consumer, KafkaError, KafkaException, Message, Producer, TopicPartition
import orjson

from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.platform.metrics.booking_metrics import metrics


MessageHandler = Callable[[Message], Any]


class BaseKafkaConsumer(ABC):
    # === Tuning Parameters (subclasses can override) ===
    #
    # POLL_TIMEOUT_SECONDS: Max time poll() waits for a message
    # COMMIT_INTERVAL_SECONDS / MAX_PENDING_COMMITS: batch commit triggers
    # MAX_IN_FLIGHT_MESSAGES: poll loop blocks once this many messages are queued on lanes
    # DLQ_FLUSH_TIMEOUT_SECONDS: max wait for the DLQ acknowledgment
    #
    POLL_TIMEOUT_SECONDS: float = 0.05
    COMMIT_INTERVAL_SECONDS: float = 0.5
    MAX_PENDING_COMMITS: int = 100
    MAX_IN_FLIGHT_MESSAGES: int = 500
    DLQ_FLUSH_TIMEOUT_SECONDS: float = 10.0

    # Exceptions worth retrying in place; anything else is dead-lettered at once
    TRANSIENT_ERRORS: Tuple[type[Exception], ...] = ()

    def __init__(
        self,
        *,
        service_name: str,
        consumer_config: Dict[str, Any],
        producer_config: Dict[str, Any],
        dlq_topic: str,
        instance_id: str,
        max_workers: int = 4,
        max_attempts: int = 3,
        retry_backoff_seconds: float = 0.2,
    ) -> None:
        self.service_name = service_name
        self.consumer_config = consumer_config
        self.producer_config = producer_config
        self.dlq_topic = dlq_topic
        self.instance_id = instance_id
        self.max_workers = max(1, max_workers)
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff_seconds = retry_backoff_seconds

        self.consumer: Optional[Consumer] = None
        self.producer: Optional[Producer] = None  # DLQ
        self._lanes: List[ThreadPoolExecutor] = []

        self.running = False
        self.stop_event = threading.Event()
        self._fatal_error: Optional[BaseException] = None

        # {(topic, partition): next_offset_to_commit}
        self._pending_offsets: Dict[Tuple[str, int], int] = {}
        self._pending_count = 0
        self._offset_lock = threading.Lock()
        self._last_commit_time = time.monotonic()
        self._in_flight_futures: List[Future] = []

    @abstractmethod
    def _get_topic_handlers(self) -> Dict[str, MessageHandler]:
        """
        Return topic name to handler mapping.

        A handler receives the raw message and must raise to signal failure;
        returning normally acknowledges the message.
        """

    @abstractmethod
    def _initialize_dependencies(self) -> None:
        """Resolve use cases before the first poll."""

    def _create_consumer(self) -> Consumer:
        return Consumer(
            {
                **self.consumer_config,
                'enable.auto.commit': False,
                'enable.auto.offset.store': False,
                # Low latency (librdkafka default: 500, 1)
                'fetch.wait.max.ms': 50,
                'fetch.min.bytes': 1,
                'session.timeout.ms': 45000,
                'heartbeat.interval.ms': 15000,
                'reconnect.backoff.ms': 1000,
                'reconnect.backoff.max.ms': 30000,
            }
        )

    def _create_producer(self) -> Producer:
        return Producer(self.producer_config)

    def _lane_for(self, msg: Message) -> ThreadPoolExecutor:
        return self._lanes[msg.partition() % len(self._lanes)]

    # ========== Offsets ==========

    def _track_offset(self, msg: Message) -> None:
        """Kafka commits the next offset to read: processed 5 -> commit 6."""
        key = (msg.topic(), msg.partition())
        offset = msg.offset() + 1
        with self._offset_lock:
            if offset > self._pending_offsets.get(key, -1):
                self._pending_offsets[key] = offset
                self._pending_count += 1

    def _maybe_commit_offsets(self, *, force: bool = False) -> None:
        now = time.monotonic()
        with self._offset_lock:
            should_commit = (
                force
                or self._pending_count >= self.MAX_PENDING_COMMITS
                or now - self._last_commit_time >= self.COMMIT_INTERVAL_SECONDS
            )
            if not should_commit or not self._pending_offsets or not self.consumer:
                return
            snapshot = dict(self._pending_offsets)
            self._pending_offsets.clear()
            self._pending_count = 0
            self._last_commit_time = now

        offsets = [
            TopicPartition(topic, partition, offset)
            for (topic, partition), offset in snapshot.items()
        ]
        try:
            self.consumer.commit(offsets=offsets, asynchronous=False)
            Logger.base.debug(f'[{self.service_name}] Committed {len(offsets)} partition offsets')
        except KafkaException as e:
            Logger.base.error(f'[{self.service_name}] Commit failed, will retry: {e}')
            with self._offset_lock:
                for key, offset in snapshot.items():
                    if offset > self._pending_offsets.get(key, -1):
                        self._pending_offsets[key] = offset
                        self._pending_count += 1

    # ========== DLQ ==========

    def _send_to_dlq(self, *, msg: Message, error: BaseException, retry_count: int) -> bool:
        """Publish a failed message to the DLQ and wait for the ack; False if it was not stored."""
        if not self.producer:
            Logger.base.error(f'[{self.service_name}] DLQ producer not initialized')
            return False

        raw = msg.value()
        try:
            original: Any = orjson.loads(raw) if raw else None
        except orjson.JSONDecodeError:
            original = {'raw': raw.hex() if raw else 'empty'}

        dlq_message = {
            'original_message': original,
            'original_topic': msg.topic(),
            'original_partition': msg.partition(),
            'original_offset': msg.offset(),
            'error': f'{type(error).__name__}: {error}',
            'retry_count': retry_count,
            'timestamp': time.time(),
            'instance_id': self.instance_id,
        }

        delivered = threading.Event()
        delivery_errors: List[KafkaError] = []

        def on_delivery(err: Optional[KafkaError], _msg: Message) -> None:
            if err is not None:
                delivery_errors.append(err)
            delivered.set()

        try:
            self.producer.produce(
                topic=self.dlq_topic,
                key=msg.key(),
                value=orjson.dumps(dlq_message),
                on_delivery=on_delivery,
            )
            self.producer.flush(self.DLQ_FLUSH_TIMEOUT_SECONDS)
        except (KafkaException, BufferError) as e:
            Logger.base.error(f'[{self.service_name}] [DLQ] Failed to send: {e}')
            return False

        if not delivered.wait(timeout=1.0) or delivery_errors:
            Logger.base.error(
                f'[{self.service_name}] [DLQ] Not acknowledged: {delivery_errors or "timeout"}'
            )
            return False

        metrics.record_dead_lettered(service=self.service_name, topic=msg.topic())
        Logger.base.warning(
            f'[{self.service_name}] [DLQ] {msg.topic()}[{msg.partition()}]@{msg.offset()} '
            f'-> {self.dlq_topic}: {dlq_message["error"]}'
        )
        return True

    # ========== Processing ==========

    def _process_message(self, msg: Message, handler: MessageHandler) -> None:
        """Runs on the partition's lane."""
        if self.stop_event.is_set():
            # Not acknowledged; redelivered after restart or rebalance
            return

        topic = msg.topic()
        last_error: Optional[Exception] = None
        attempt = 0
        while attempt < self.max_attempts:
            attempt += 1
            try:
                handler(msg)
            except self.TRANSIENT_ERRORS as e:
                last_error = e
                metrics.record_kafka_error(
                    service=self.service_name, topic=topic, error_type=type(e).__name__
                )
                if attempt >= self.max_attempts:
                    break
                backoff = self.retry_backoff_seconds * (2 ** (attempt - 1))
                Logger.base.warning(
                    f'[{self.service_name}] Transient failure {attempt}/{self.max_attempts} '
                    f'at {topic}[{msg.partition()}]@{msg.offset()}, retry in {backoff:.2f}s: {e}'
                )
                if self.stop_event.wait(backoff):
                    return
                continue
            except Exception as e:
                last_error = e
                metrics.record_kafka_error(
                    service=self.service_name, topic=topic, error_type=type(e).__name__
                )
                break
            else:
                self._track_offset(msg)
                metrics.record_kafka_message_processed(service=self.service_name, topic=topic)
                return

        if last_error is None:
            raise RuntimeError('Retry loop ended without a result')
        if self._send_to_dlq(msg=msg, error=last_error, retry_count=attempt):
            self._track_offset(msg)
            return

        # Neither handled nor parked: stop before any later offset can be committed past it
        Logger.base.critical(
            f'[{self.service_name}] Halting: {topic}[{msg.partition()}]@{msg.offset()} '
            f'could not be processed or dead-lettered'
        )
        self._fatal_error = last_error
        self.request_stop()

    def _prune_in_flight(self) -> None:
        self._in_flight_futures = [f for f in self._in_flight_futures if not f.done()]

    def _wait_for_capacity(self) -> None:
        self._prune_in_flight()
        while len(self._in_flight_futures) >= self.MAX_IN_FLIGHT_MESSAGES:
            wait(self._in_flight_futures, timeout=1.0, return_when=FIRST_COMPLETED)
            self._prune_in_flight()
            self._maybe_commit_offsets()

    def _drain_in_flight(self, *, timeout: float | None = None) -> None:
        if self._in_flight_futures:
            wait(self._in_flight_futures, timeout=timeout)
        self._prune_in_flight()

    def _on_revoke(self, consumer: Consumer, partitions: List[TopicPartition]) -> None:
        # Finish and commit what this instance already took before another member resumes
        Logger.base.info(f'[{self.service_name}] Partitions revoked: {len(partitions)}')
        self._drain_in_flight()
        self._maybe_commit_offsets(force=True)

    # ========== Lifecycle ==========

    def start(self) -> None:
        """Run until request_stop(); retries while the topic is not yet created."""
        max_retries, delay = 5, 2
        for attempt in range(1, max_retries + 1):
            try:
                self._initialize_dependencies()
                self.consumer = self._create_consumer()
                self.producer = self._create_producer()

                handlers = self._get_topic_handlers()
                self.consumer.subscribe(list(handlers.keys()), on_revoke=self._on_revoke)

                self._lanes = [
                    ThreadPoolExecutor(
                        max_workers=1, thread_name_prefix=f'{self.service_name}-lane-{index}'
                    )
                    for index in range(self.max_workers)
                ]
                Logger.base.info(
                    f'[{self.service_name}-{self.instance_id}] Started | '
                    f'group={self.consumer_config.get("group.id")} '
                    f'topics={list(handlers.keys())} lanes={self.max_workers}'
                )

                self.running = True
                try:
                    self._run_loop(handlers)
                finally:
                    self._shutdown()
                break

            except KafkaException as e:
                if 'UNKNOWN_TOPIC_OR_PART' in str(e) and attempt < max_retries:
                    Logger.base.warning(
                        f'[{self.service_name}] {attempt}/{max_retries}: Topic not ready, retry in {delay}s'
                    )
                    time.sleep(delay)
                    delay *= 2
                else:
                    Logger.base.error(f'[{self.service_name}] Start failed: {e}')
                    raise

        if self._fatal_error is not None:
            raise self._fatal_error

    def _run_loop(self, handlers: Dict[str, MessageHandler]) -> None:
        if self.consumer is None:
            raise RuntimeError('Consumer not created; call start()')
        while self.running and not self.stop_event.is_set():
            try:
                msg = self.consumer.poll(timeout=self.POLL_TIMEOUT_SECONDS)
            except KafkaException as e:
                Logger.base.error(f'[{self.service_name}] Poll error: {e}')
                time.sleep(0.1)
                continue

            if msg is None:
                self._maybe_commit_offsets()
                self._prune_in_flight()
                continue

            if msg.error():
                if msg.error().code() != KafkaError._PARTITION_EOF:
                    Logger.base.error(f'[{self.service_name}] Kafka error: {msg.error()}')
                continue

            handler = handlers.get(msg.topic())
            if handler is None:
                continue

            self._wait_for_capacity()
            self._in_flight_futures.append(
                self._lane_for(msg).submit(self._process_message, msg, handler)
            )
            self._maybe_commit_offsets()

    def request_stop(self) -> None:
        """Signal-safe: only flips flags; the poll thread performs the shutdown."""
        self.running = False
        self.stop_event.set()

    def _shutdown(self) -> None:
        Logger.base.info(f'[{self.service_name}] Stopping...')
        self.running = False
        self.stop_event.set()

        # Handlers already running finish; queued ones see stop_event and skip
        self._drain_in_flight(timeout=30.0)
        self._maybe_commit_offsets(force=True)

        for lane in self._lanes:
            lane.shutdown(wait=True, cancel_futures=True)
        self._lanes = []

        if self.consumer:
            try:
                self.consumer.close()
            except KafkaException as e:
                Logger.base.warning(f'[{self.service_name}] Close error: {e}')
            self.consumer = None

        if self.producer:
            self.producer.flush(timeout=5.0)
            self.producer = None

        Logger.base.info(f'[{self.service_name}] Stopped')
