"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from restaurant_booking.platform.config.core_setting import Settings
from restaurant_booking.platform.database.orm_db_setting import Database
from restaurant_booking.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from restaurant_booking.platform.message_queue.event_publisher import KafkaEventPublisher
from restaurant_booking.service.intake.driven_adapter.message_queue.booking_event_publisher_impl import (
    BookingEventPublisherImpl,
)
from restaurant_booking.service.intake.driven_adapter.repo.booking_query_repo_impl import (
    BookingQueryRepoImpl,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (engine per event loop, session per unit of work)
    database = providers.Singleton(Database)

    # One transaction per call: use cases receive the provider and open a fresh UoW each time
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork, session_factory=database.provided.session
    )

    # Repositories outside a unit of work (read side)
    booking_query_repo = providers.Singleton(
        BookingQueryRepoImpl, session_factory=database.provided.session
    )

    # Message Queue
    kafka_event_publisher = providers.Singleton(KafkaEventPublisher, config=config_service)
    booking_event_publisher = providers.Singleton(
        BookingEventPublisherImpl,
        publisher=kafka_event_publisher,
        topic=config_service.provided.KAFKA_BOOKING_EVENTS_TOPIC,
    )


container = Container()


async def cleanup() -> None:
    """Release process-wide clients owned by the container."""
    await container.kafka_event_publisher().close()
    await container.database().dispose()
    container.reset_singletons()
