"""
Booking Event Publisher Interface

Use cases depend on this port, not on Kafka.
"""

from abc import ABC, abstractmethod

from restaurant_booking.service.shared_kernel.domain.domain_event import BookingCreatedEvent


class IBookingEventPublisher(ABC):
    @abstractmethod
    async def publish_booking_created(self, *, event: BookingCreatedEvent) -> None:
        """
        Publish BOOKING_CREATED keyed by booking id and wait for the acknowledgment.

        Raises:
            ChannelPublishError: If the event was not acknowledged
        """
