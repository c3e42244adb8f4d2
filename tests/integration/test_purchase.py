# tests/integration/test_purchase.py

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from src.application.cancellation_service import CancellationService
from src.application.purchase_service import PurchaseService
from src.application.reservation_service import ReservationService
from src.domain.exceptions import (
    BuyerMismatchError,
    EmptySelectionError,
    HoldExpiredError,
    SeatNotHeldError,
    SeatOwnershipError,
)
from src.domain.state_machine import PaymentStatus, SeatStatus
from src.infrastructure.db.models import Order, OrderLine


@pytest.fixture
def hold(run, policy, clock):
    def _hold(seat_ids, buyer_id):
        return run(
            lambda db: ReservationService(db, policy, clock).hold(
                seat_ids, buyer_id, caller_id=buyer_id
            )
        )

    return _hold


@pytest.fixture
def purchase(run, policy, clock):
    def _purchase(seat_ids, buyer_id, caller_id=None):
        return run(
            lambda db: PurchaseService(db, policy, clock).purchase(
                seat_ids, buyer_id, caller_id=caller_id or buyer_id
            )
        )

    return _purchase


@pytest.fixture
def order_count(run):
    return lambda: run(lambda db: db.execute(select(func.count(Order.id))).scalar_one())


# ---------------------
# SUCCESS
# ---------------------

def test_purchase_totals_section_prices(gala, hold, purchase, run):
    floor = gala.seat("Floor", "A1")
    balcony = gala.seat("Balcony", "A1")
    box = gala.seat("Box", "A1")
    hold([floor, balcony, box], "alice")

    order = purchase([floor, balcony, box], "alice")

    assert order.total_amount == Decimal("50")
    assert order.buyer_id == "alice"
    assert order.payment_status is PaymentStatus.COMPLETED

    lines = run(
        lambda db: db.execute(
            select(OrderLine.seat_id, OrderLine.price).where(OrderLine.order_id == order.id)
        ).all()
    )
    assert len(lines) == 3
    assert {seat_id: price for seat_id, price in lines} == {
        floor: Decimal("10.00"),
        balcony: Decimal("15.00"),
        box: Decimal("25.00"),
    }


def test_purchase_marks_seats_sold(gala, hold, purchase, load_seats):
    a1 = gala.seat("Floor", "A1")
    a2 = gala.seat("Floor", "A2")
    hold([a1, a2], "alice")

    order = purchase([a1, a2], "alice")

    for seat in load_seats([a1, a2]).values():
        assert seat.status is SeatStatus.SOLD
        assert seat.order_id == order.id
        assert seat.holder_id == "alice"
        assert seat.held_at is None


def test_purchase_at_exact_ttl_boundary_succeeds(gala, hold, purchase, clock):
    a1 = gala.seat("Floor", "A1")
    hold([a1], "alice")
    clock.advance(10)

    assert purchase([a1], "alice").total_amount == Decimal("10")


# ---------------------
# ATOMICITY
# ---------------------

def test_purchase_with_someone_elses_seat_changes_nothing(gala, hold, purchase, load_seats, order_count):
    x = gala.seat("Floor", "A1")
    y = gala.seat("Floor", "A2")
    hold([x], "alice")
    hold([y], "bob")

    with pytest.raises(SeatOwnershipError) as exc_info:
        purchase([x, y], "alice")

    assert exc_info.value.seat_ids == [y]
    seats = load_seats([x, y])
    assert seats[x].status is SeatStatus.HELD
    assert seats[x].holder_id == "alice"
    assert seats[x].order_id is None
    assert order_count() == 0


def test_expired_hold_aborts_purchase(gala, hold, purchase, load_seats, clock, order_count):
    a1 = gala.seat("Floor", "A1")
    hold([a1], "alice")
    clock.advance(11)

    with pytest.raises(HoldExpiredError):
        purchase([a1], "alice")

    assert load_seats([a1])[a1].status is SeatStatus.HELD
    assert order_count() == 0


def test_evicted_hold_is_an_ownership_failure(gala, hold, purchase, clock):
    a1 = gala.seat("Floor", "A1")
    hold([a1], "alice")
    clock.advance(11)
    hold([a1], "bob")

    with pytest.raises(SeatOwnershipError):
        purchase([a1], "alice")


def test_available_seat_is_not_held(gala, purchase, order_count):
    with pytest.raises(SeatNotHeldError):
        purchase([gala.seat("Floor", "A1")], "alice")

    assert order_count() == 0


def test_unknown_seat_is_not_held(gala, hold, purchase):
    a1 = gala.seat("Floor", "A1")
    hold([a1], "alice")

    with pytest.raises(SeatNotHeldError) as exc_info:
        purchase([a1, "missing"], "alice")

    assert exc_info.value.seat_ids == ["missing"]


# ---------------------
# PERMANENCE
# ---------------------

def test_sold_seat_is_permanent(gala, hold, purchase, run, load_seats, policy, clock, order_count):
    a1 = gala.seat("Floor", "A1")
    hold([a1], "alice")
    order = purchase([a1], "alice")

    with pytest.raises(SeatNotHeldError):
        purchase([a1], "alice")
    with pytest.raises(SeatNotHeldError):
        run(lambda db: CancellationService(db, policy, clock).cancel([a1], "alice", caller_id="alice"))

    clock.advance(600)
    assert hold([a1], "bob").held_count == 0

    seat = load_seats([a1])[a1]
    assert seat.status is SeatStatus.SOLD
    assert seat.order_id == order.id
    assert order_count() == 1


# ---------------------
# VALIDATION
# ---------------------

def test_empty_purchase_rejected(gala, purchase):
    with pytest.raises(EmptySelectionError):
        purchase([], "alice")


def test_cannot_purchase_for_another_buyer(gala, hold, purchase):
    a1 = gala.seat("Floor", "A1")
    hold([a1], "alice")

    with pytest.raises(BuyerMismatchError):
        purchase([a1], "alice", caller_id="mallory")
