import os
from pathlib import Path
from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Restaurant Booking'
    VERSION: str = '0.1.0'
    DEBUG: bool = False
    SERVICE_NAME: str = 'booking-api'

    # HTTP server (booking-api)
    API_HOST: str = '0.0.0.0'
    API_PORT: int = 8000

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'booking_user'
    POSTGRES_PASSWORD: SecretStr = SecretStr('booking_pass')
    POSTGRES_DB: str = 'booking_db'

    # Connection pool (pool_size + max_overflow = 20 connections per process)
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 2  # seconds to wait for a free connection
    DB_POOL_RECYCLE: int = 1800
    DB_POOL_PRE_PING: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@'
            f'{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = 'localhost:9092'
    KAFKA_CLIENT_ID: str = 'restaurant-booking'
    KAFKA_BOOKING_EVENTS_TOPIC: str = 'booking-events'
    KAFKA_BOOKING_DLQ_TOPIC: str = 'booking-events-dlq'
    KAFKA_RESOLVER_GROUP_ID: str = 'booking-service-group'
    KAFKA_AUTO_OFFSET_RESET: str = 'earliest'
    KAFKA_TOPIC_PARTITIONS: int = 6
    KAFKA_REPLICATION_FACTOR: int = 1  # 1 for development, 3 for production
    KAFKA_PUBLISH_TIMEOUT_SECONDS: float = 10.0
    KAFKA_CONSUMER_INSTANCE_ID: str = os.getenv(
        'KAFKA_CONSUMER_INSTANCE_ID', f'resolver-{os.getpid()}'
    )

    # Resolver
    RESOLVER_MAX_WORKERS: int = 4
    RESOLVER_MAX_ATTEMPTS: int = 3
    RESOLVER_RETRY_BACKOFF_SECONDS: float = 0.2
    RESOLVER_LOCK_TIMEOUT_MS: int = 5000

    # Intake
    BOOKING_LIST_PAGE_SIZE: int = 100
    REPUBLISH_STALE_AFTER_SECONDS: int = 60

    # Observability
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None

    @property
    def KAFKA_PRODUCER_CONFIG(self) -> dict:
        return {
            'bootstrap.servers': self.KAFKA_BOOTSTRAP_SERVERS,
            'client.id': self.KAFKA_CLIENT_ID,
            'enable.idempotence': True,
            'acks': 'all',
            'retries': 3,
            'linger.ms': 5,
            'compression.type': 'snappy',
            'message.timeout.ms': int(self.KAFKA_PUBLISH_TIMEOUT_SECONDS * 1000),
        }

    @property
    def KAFKA_CONSUMER_CONFIG(self) -> dict:
        return {
            'bootstrap.servers': self.KAFKA_BOOTSTRAP_SERVERS,
            'client.id': f'{self.KAFKA_CLIENT_ID}-{self.KAFKA_CONSUMER_INSTANCE_ID}',
            'group.id': self.KAFKA_RESOLVER_GROUP_ID,
            'auto.offset.reset': self.KAFKA_AUTO_OFFSET_RESET,
            'enable.auto.commit': False,
        }


settings = Settings()  # type: ignore
