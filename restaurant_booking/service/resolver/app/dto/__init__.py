"""Resolver Application DTOs"""

from restaurant_booking.service.resolver.app.dto.resolution_dto import ResolutionResult


__all__ = ['ResolutionResult']
