# src/domain/state_machine.py

from enum import Enum
from typing import Dict, Set


class SeatStatus(str, Enum):
    AVAILABLE = "available"
    HELD = "held"
    SOLD = "sold"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class SeatStateMachine:
    """
    Legal seat transitions.
    HELD -> HELD is a stale hold being taken over by a new claimant.
    SOLD is permanent.
    """

    _ALLOWED_TRANSITIONS: Dict[SeatStatus, Set[SeatStatus]] = {
        SeatStatus.AVAILABLE: {
            SeatStatus.HELD,
        },
        SeatStatus.HELD: {
            SeatStatus.HELD,
            SeatStatus.AVAILABLE,
            SeatStatus.SOLD,
        },
        SeatStatus.SOLD: set(),
    }

    @classmethod
    def can_transition(
        cls,
        from_status: SeatStatus,
        to_status: SeatStatus,
    ) -> bool:
        """
        Returns True if transition is allowed.
        """
        cls._ensure_valid_status(from_status)
        cls._ensure_valid_status(to_status)

        return to_status in cls._ALLOWED_TRANSITIONS.get(from_status, set())

    @staticmethod
    def _ensure_valid_status(status: SeatStatus) -> None:
        if not isinstance(status, SeatStatus):
            raise TypeError(
                f"Expected SeatStatus, got {type(status)}"
            )
