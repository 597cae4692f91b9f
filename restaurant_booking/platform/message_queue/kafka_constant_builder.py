from restaurant_booking.platform.config.core_setting import Settings, settings


class ServiceNames:
    """Service name constants"""

    RESOLVER_SERVICE = 'booking-resolver'  # Consumes BOOKING_CREATED, decides the status


class KafkaTopicBuilder:
    """
    Topic names are deployment configuration; both services must agree on them.

    Defaults: booking-events, booking-events-dlq
    """

    @staticmethod
    def booking_events(*, config: Settings = settings) -> str:
        return config.KAFKA_BOOKING_EVENTS_TOPIC

    @staticmethod
    def booking_events_dlq(*, config: Settings = settings) -> str:
        return config.KAFKA_BOOKING_DLQ_TOPIC

    @staticmethod
    def get_all_topics(*, config: Settings = settings) -> list[str]:
        return [
            KafkaTopicBuilder.booking_events(config=config),
            KafkaTopicBuilder.booking_events_dlq(config=config),
        ]

