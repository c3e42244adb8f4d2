from datetime import datetime
from typing import Iterable

from src.domain.exceptions import (
    AuthenticationRequiredError,
    BuyerMismatchError,
    EmptySelectionError,
    HoldExpiredError,
    SeatNotHeldError,
    SeatOwnershipError,
)
from src.domain.expiry import ExpiryPolicy
from src.domain.state_machine import SeatStateMachine, SeatStatus
from src.infrastructure.db.models import Seat


def ensure_caller_is_buyer(buyer_id: str, caller_id: str | None) -> None:
    if not caller_id:
        raise AuthenticationRequiredError()
    if caller_id != buyer_id:
        raise BuyerMismatchError()


def distinct_seat_ids(seat_ids: Iterable[str], empty_message: str) -> list[str]:
    """Drops repeats, keeping first-seen order."""
    unique = list(dict.fromkeys(seat_ids))
    if not unique:
        raise EmptySelectionError(empty_message)
    return unique


def verify_buyer_holds(
    requested: list[str],
    seats: Iterable[Seat],
    buyer_id: str,
    policy: ExpiryPolicy,
    now: datetime,
    target: SeatStatus,
) -> None:
    """
    Every requested seat must exist, be held, be held by buyer_id and still
    be fresh. Raises on the first seat that is not.
    """
    found = {seat.id: seat for seat in seats}
    missing = [seat_id for seat_id in requested if seat_id not in found]
    if missing:
        raise SeatNotHeldError(missing)

    for seat_id in requested:
        seat = found[seat_id]
        if not SeatStateMachine.can_transition(seat.status, target):
            raise SeatNotHeldError([seat_id])
        if seat.holder_id != buyer_id:
            raise SeatOwnershipError([seat_id])
        if policy.is_stale(seat.held_at, now):
            raise HoldExpiredError([seat_id])
