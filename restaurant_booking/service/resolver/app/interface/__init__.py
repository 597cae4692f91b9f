"""Resolver Service Interfaces"""

from restaurant_booking.service.resolver.app.interface.i_booking_resolution_repo import (
    IBookingResolutionRepo,
)


__all__ = ['IBookingResolutionRepo']
