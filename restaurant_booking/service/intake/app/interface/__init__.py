"""Intake Service Interfaces"""

from restaurant_booking.service.intake.app.interface.i_booking_command_repo import (
    IBookingCommandRepo,
)
from restaurant_booking.service.intake.app.interface.i_booking_event_publisher import (
    IBookingEventPublisher,
)
from restaurant_booking.service.intake.app.interface.i_booking_query_repo import IBookingQueryRepo


__all__ = ['IBookingCommandRepo', 'IBookingEventPublisher', 'IBookingQueryRepo']
