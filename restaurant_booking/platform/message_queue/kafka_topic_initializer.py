"""
Kafka Topic Initializer

Creates the booking topics through the AdminClient before producers and
consumers attach, so the resolver never subscribes to a missing topic.
"""

from confluent_kafka import KafkaError, KafkaException
from confluent_kafka.admin import AdminClient, NewTopic

from restaurant_booking.platform.config.core_setting import Settings, settings
from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder


class KafkaTopicInitializer:
    def __init__(self, *, config: Settings = settings) -> None:
        self.config = config
        self.admin_client = AdminClient({'bootstrap.servers': config.KAFKA_BOOTSTRAP_SERVERS})

    def ensure_topics_exist(self) -> bool:
        """
        Returns:
            bool: True if every topic exists or was created
        """
        try:
            required_topics = KafkaTopicBuilder.get_all_topics(config=self.config)
            existing_topics = set(self.admin_client.list_topics(timeout=10).topics.keys())
            topics_to_create = [topic for topic in required_topics if topic not in existing_topics]

            if not topics_to_create:
                Logger.base.info(f'✅ [TOPIC-INIT] All {len(required_topics)} topics exist')
                return True

            new_topics = [
                NewTopic(
                    topic=topic,
                    num_partitions=self.config.KAFKA_TOPIC_PARTITIONS,
                    replication_factor=self.config.KAFKA_REPLICATION_FACTOR,
                    config={
                        'cleanup.policy': 'delete',
                        'retention.ms': '604800000',  # 7 days
                    },
                )
                for topic in topics_to_create
            ]
            futures = self.admin_client.create_topics(new_topics, request_timeout=30)

            success_count = 0
            for topic, future in futures.items():
                try:
                    future.result()
                    Logger.base.info(f'✅ [TOPIC-INIT] Created topic: {topic}')
                    success_count += 1
                except KafkaException as e:
                    # Another service may have created it concurrently
                    if e.args[0].code() == KafkaError.TOPIC_ALREADY_EXISTS:
                        success_count += 1
                    else:
                        Logger.base.error(f'❌ [TOPIC-INIT] Failed to create {topic}: {e}')

            return success_count == len(topics_to_create)

        except KafkaException as e:
            Logger.base.error(f'❌ [TOPIC-INIT] Failed to ensure topics exist: {e}')
            return False
