from prometheus_client import Counter, Histogram


class BookingMetrics:
    """Prometheus collectors for booking intake, event publishing and resolution."""

    def __init__(self):
        # ========== Intake ==========
        self.bookings_submitted = Counter(
            'booking_submitted_total',
            'Bookings persisted in CREATED status',
        )
        self.booking_publish_failures = Counter(
            'booking_publish_failures_total',
            'BOOKING_CREATED events that failed to publish after commit',
        )
        self.booking_events_republished = Counter(
            'booking_events_republished_total',
            'BOOKING_CREATED events republished for bookings stuck in CREATED',
        )

        # ========== Resolver ==========
        self.booking_resolutions = Counter(
            'booking_resolutions_total',
            'Resolution transactions by outcome',
            ['outcome'],  # confirmed / rejected / noop
        )
        self.booking_resolution_duration = Histogram(
            'booking_resolution_duration_seconds',
            'Conflict-resolution transaction duration',
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
        )
        self.booking_resolution_failures = Counter(
            'booking_resolution_failures_total',
            'Resolution transactions rolled back',
        )

        # ========== Kafka Consumer ==========
        self.kafka_messages_processed = Counter(
            'kafka_consumer_messages_processed_total',
            'Messages handled and acknowledged',
            ['service', 'topic'],
        )
        self.kafka_consumer_errors = Counter(
            'kafka_consumer_errors_total',
            'Handler errors by type',
            ['service', 'topic', 'error_type'],
        )
        self.kafka_messages_dead_lettered = Counter(
            'kafka_consumer_dead_lettered_total',
            'Messages routed to the dead-letter topic',
            ['service', 'topic'],
        )

    def record_resolution(self, *, outcome: str, duration: float) -> None:
        self.booking_resolutions.labels(outcome=outcome).inc()
        self.booking_resolution_duration.observe(duration)

    def record_kafka_message_processed(self, *, service: str, topic: str) -> None:
        self.kafka_messages_processed.labels(service=service, topic=topic).inc()

    def record_kafka_error(self, *, service: str, topic: str, error_type: str) -> None:
        self.kafka_consumer_errors.labels(
            service=service, topic=topic, error_type=error_type
        ).inc()

    def record_dead_lettered(self, *, service: str, topic: str) -> None:
        self.kafka_messages_dead_lettered.labels(service=service, topic=topic).inc()


metrics = BookingMetrics()
