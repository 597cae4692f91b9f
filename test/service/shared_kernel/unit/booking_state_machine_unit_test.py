import pytest

from restaurant_booking.platform.exception.exceptions import InvalidStatusTransitionError
from restaurant_booking.service.shared_kernel.domain.booking_state_machine import (
    can_transition,
    decide_resolution,
    ensure_transition,
)
from restaurant_booking.service.shared_kernel.domain.enum import BookingStatus


@pytest.mark.unit
class TestDecideResolution:
    def test_no_conflict_confirms(self) -> None:
        assert (
            decide_resolution(current=BookingStatus.CHECKING_AVAILABILITY, has_conflict=False)
            is BookingStatus.CONFIRMED
        )

    def test_conflict_rejects(self) -> None:
        assert (
            decide_resolution(current=BookingStatus.CHECKING_AVAILABILITY, has_conflict=True)
            is BookingStatus.REJECTED
        )

    @pytest.mark.parametrize('terminal', [BookingStatus.CONFIRMED, BookingStatus.REJECTED])
    @pytest.mark.parametrize('has_conflict', [True, False])
    def test_terminal_status_is_kept(self, terminal: BookingStatus, has_conflict: bool) -> None:
        assert decide_resolution(current=terminal, has_conflict=has_conflict) is terminal


@pytest.mark.unit
class TestTransitions:
    @pytest.mark.parametrize(
        'current,target',
        [
            (BookingStatus.CREATED, BookingStatus.CHECKING_AVAILABILITY),
            (BookingStatus.CHECKING_AVAILABILITY, BookingStatus.CONFIRMED),
            (BookingStatus.CHECKING_AVAILABILITY, BookingStatus.REJECTED),
        ],
    )
    def test_allowed(self, current: BookingStatus, target: BookingStatus) -> None:
        assert can_transition(current, target)
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        'current,target',
        [
            (BookingStatus.CREATED, BookingStatus.CONFIRMED),
            (BookingStatus.CREATED, BookingStatus.REJECTED),
            (BookingStatus.CHECKING_AVAILABILITY, BookingStatus.CREATED),
            (BookingStatus.CONFIRMED, BookingStatus.REJECTED),
            (BookingStatus.REJECTED, BookingStatus.CONFIRMED),
            (BookingStatus.CONFIRMED, BookingStatus.CHECKING_AVAILABILITY),
        ],
    )
    def test_forbidden(self, current: BookingStatus, target: BookingStatus) -> None:
        assert not can_transition(current, target)
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            ensure_transition(current, target)
        assert exc_info.value.status_code == 409

    def test_terminal_flags(self) -> None:
        assert BookingStatus.CONFIRMED.is_terminal
        assert BookingStatus.REJECTED.is_terminal
        assert not BookingStatus.CREATED.is_terminal
        assert not BookingStatus.CHECKING_AVAILABILITY.is_terminal
