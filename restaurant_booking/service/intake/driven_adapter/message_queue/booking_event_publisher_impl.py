"""
Booking Event Publisher Implementation

Adapter from IBookingEventPublisher to the Kafka publisher: picks the topic,
serializes the event and keys it by booking id.
"""

from restaurant_booking.platform.logging.loguru_io import Logger
from restaurant_booking.platform.message_queue.booking_event_codec import encode_booking_created
from restaurant_booking.platform.message_queue.event_publisher import KafkaEventPublisher
from restaurant_booking.platform.observability.tracing import inject_trace_context
from restaurant_booking.service.intake.app.interface.i_booking_event_publisher import (
    IBookingEventPublisher,
)
from restaurant_booking.service.shared_kernel.domain.domain_event import BookingCreatedEvent


class BookingEventPublisherImpl(IBookingEventPublisher):
    def __init__(self, *, publisher: KafkaEventPublisher, topic: str) -> None:
        self.publisher = publisher
        self.topic = topic

    @Logger.io
    async def publish_booking_created(self, *, event: BookingCreatedEvent) -> None:
        await self.publisher.publish(
            topic=self.topic,
            key=event.partition_key,
            value=encode_booking_created(event, trace_context=inject_trace_context()),
            event_type=event.event_type.value,
        )
