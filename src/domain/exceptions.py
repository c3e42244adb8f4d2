

class SeatEngineError(Exception):
    """
    Base exception for all domain-level errors
    inside the seat hold engine.
    """

    code = "SEAT_ENGINE_ERROR"

    def __init__(self, message: str, seat_ids: list[str] | None = None):
        self.message = message
        self.seat_ids = list(seat_ids or [])
        super().__init__(message)

    def to_detail(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "seat_ids": self.seat_ids,
        }


# Validation errors: rejected before the store is touched.

class EmptySelectionError(SeatEngineError):
    code = "EMPTY_SELECTION"

    def __init__(self, message: str = "No seats selected"):
        super().__init__(message)


class AuthenticationRequiredError(SeatEngineError):
    code = "AUTHENTICATION_REQUIRED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class BuyerMismatchError(SeatEngineError):
    """Raised when the caller acts on behalf of a different buyer."""

    code = "BUYER_MISMATCH"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


# Ownership / staleness errors: abort the whole batch.

class SeatOwnershipError(SeatEngineError):
    code = "NOT_SEAT_OWNER"

    def __init__(self, seat_ids: list[str]):
        super().__init__("You do not own all selected seats", seat_ids)


class SeatNotHeldError(SeatEngineError):
    code = "SEAT_NOT_HELD"

    def __init__(self, seat_ids: list[str]):
        super().__init__("Some seats are not currently held", seat_ids)


class HoldExpiredError(SeatEngineError):
    code = "HOLD_EXPIRED"

    def __init__(self, seat_ids: list[str]):
        super().__init__("Your reservation has expired", seat_ids)


class ConcurrentModificationError(SeatEngineError):
    """Raised when seats changed between the check and the write."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, seat_ids: list[str]):
        super().__init__("Seats changed while the request was processed", seat_ids)


# Catalog lookups.

class EventNotFoundError(SeatEngineError):
    code = "EVENT_NOT_FOUND"

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__("Event not found")


class SectionNotFoundError(SeatEngineError):
    code = "SECTION_NOT_FOUND"

    def __init__(self, section_id: str):
        self.section_id = section_id
        super().__init__("Section not found")


class OrderNotFoundError(SeatEngineError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Order not found")
