"""Shared Kernel Entities"""

from restaurant_booking.service.shared_kernel.domain.entity.booking_entity import Booking


__all__ = ['Booking']
