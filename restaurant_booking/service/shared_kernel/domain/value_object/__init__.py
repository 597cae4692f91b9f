"""Shared Kernel Value Objects"""

from restaurant_booking.service.shared_kernel.domain.value_object.booking_slot import BookingSlot


__all__ = ['BookingSlot']
