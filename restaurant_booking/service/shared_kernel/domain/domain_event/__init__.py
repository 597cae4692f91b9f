"""Shared Kernel Domain Events"""

from restaurant_booking.service.shared_kernel.domain.domain_event.booking_created_event import (
    BookingCreatedEvent,
    BookingEventType,
)


__all__ = ['BookingCreatedEvent', 'BookingEventType']
