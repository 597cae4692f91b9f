"""Shared Kernel Enums"""

from restaurant_booking.service.shared_kernel.domain.enum.booking_status import BookingStatus


__all__ = ['BookingStatus']
