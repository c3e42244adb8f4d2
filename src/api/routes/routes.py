import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from src.infrastructure.db.session import SessionLocal
from src.infrastructure.settings import Settings, get_settings
from src.application.availability_service import AvailabilityService
from src.application.cancellation_service import CancellationService
from src.application.order_service import OrderService
from src.application.provisioning_service import ProvisioningService, SectionPlan
from src.application.purchase_service import PurchaseService
from src.application.reservation_service import HoldOutcome, ReservationService
from src.api.schemas.schemas import (
    SeatSelectionRequest,
    HoldResponse,
    PurchaseResponse,
    CancelResponse,
    SeatResponse,
    EventCreate,
    EventResponse,
    SectionResponse,
    OrderResponse,
    OrderLineResponse,
)
from src.domain.exceptions import (
    SeatEngineError,
    EmptySelectionError,
    AuthenticationRequiredError,
    BuyerMismatchError,
    SeatOwnershipError,
    SeatNotHeldError,
    HoldExpiredError,
    ConcurrentModificationError,
    EventNotFoundError,
    SectionNotFoundError,
    OrderNotFoundError,
)
from src.domain.expiry import Clock, ExpiryPolicy, utc_now
from src.domain.seat_labels import seat_label_sort_key
from src.infrastructure.db.models import Order


router = APIRouter()
logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[SeatEngineError], int] = {
    EmptySelectionError: status.HTTP_400_BAD_REQUEST,
    AuthenticationRequiredError: status.HTTP_401_UNAUTHORIZED,
    BuyerMismatchError: status.HTTP_403_FORBIDDEN,
    SeatOwnershipError: status.HTTP_409_CONFLICT,
    SeatNotHeldError: status.HTTP_409_CONFLICT,
    HoldExpiredError: status.HTTP_410_GONE,
    ConcurrentModificationError: status.HTTP_409_CONFLICT,
    EventNotFoundError: status.HTTP_404_NOT_FOUND,
    SectionNotFoundError: status.HTTP_404_NOT_FOUND,
    OrderNotFoundError: status.HTTP_404_NOT_FOUND,
}


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_clock() -> Clock:
    return utc_now


def get_expiry_policy(settings: Settings = Depends(get_settings)) -> ExpiryPolicy:
    return ExpiryPolicy(ttl=settings.hold_ttl)


def get_current_buyer(x_buyer_id: str | None = Header(default=None)) -> str | None:
    # Stand-in for the session layer: the gateway forwards the signed-in buyer.
    return x_buyer_id or None


def _http_error(exc: SeatEngineError) -> HTTPException:
    return HTTPException(
        status_code=_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
        detail=exc.to_detail(),
    )


def _require_buyer(buyer_id: str | None) -> str:
    if not buyer_id:
        raise _http_error(AuthenticationRequiredError())
    return buyer_id


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        buyer_id=order.buyer_id,
        total_amount=order.total_amount,
        payment_status=order.payment_status.value,
        created_at=order.created_at,
        lines=[
            OrderLineResponse(
                seat_id=line.seat_id,
                seat_label=line.seat_label,
                price=line.price,
            )
            for line in sorted(order.lines, key=lambda line: seat_label_sort_key(line.seat_label))
        ],
    )


def _event_response(service: AvailabilityService, event_id: str) -> EventResponse:
    event, sections = service.event_with_availability(event_id)
    return EventResponse(
        id=event.id,
        name=event.name,
        venue=event.venue,
        starts_at=event.starts_at,
        sections=[
            SectionResponse(
                id=item.section.id,
                name=item.section.name,
                price=item.section.price,
                total_seats=item.section.total_seats,
                available_seats=item.available_seats,
            )
            for item in sections
        ],
    )


@router.get("/health")
def health():
    return {"message": "Seat hold engine is running"}


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    request: EventCreate,
    db: Session = Depends(get_db),
    policy: ExpiryPolicy = Depends(get_expiry_policy),
    clock: Clock = Depends(get_clock),
):
    event = ProvisioningService(db).provision_event(
        name=request.name,
        venue=request.venue,
        starts_at=request.starts_at,
        sections=[
            SectionPlan(
                name=section.name,
                price=section.price,
                total_seats=section.total_seats,
            )
            for section in request.sections
        ],
    )
    return _event_response(AvailabilityService(db, policy, clock), event.id)


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(
    event_id: str,
    db: Session = Depends(get_db),
    policy: ExpiryPolicy = Depends(get_expiry_policy),
    clock: Clock = Depends(get_clock),
):
    try:
        return _event_response(AvailabilityService(db, policy, clock), event_id)
    except EventNotFoundError as exc:
        raise _http_error(exc) from exc


@router.get(
    "/events/{event_id}/sections/{section_id}/seats",
    response_model=list[SeatResponse],
)
def list_all_seats(
    event_id: str,
    section_id: str,
    db: Session = Depends(get_db),
    policy: ExpiryPolicy = Depends(get_expiry_policy),
    clock: Clock = Depends(get_clock),
):
    service = AvailabilityService(db, policy, clock)
    try:
        seats = service.list_all_seats(event_id, section_id)
    except SectionNotFoundError as exc:
        raise _http_error(exc) from exc

    return [
        SeatResponse(
            seat_id=seat.seat_id,
            seat_label=seat.seat_label,
            status=seat.status.value,
            held_at=seat.held_at,
            hold_expires_at=seat.hold_expires_at,
        )
        for seat in seats
    ]


@router.get("/sections/availability", response_model=dict[str, int])
def section_availability(
    section_id: list[str] = Query(default=[]),
    db: Session = Depends(get_db),
    policy: ExpiryPolicy = Depends(get_expiry_policy),
    clock: Clock = Depends(get_clock),
):
    return AvailabilityService(db, policy, clock).availability(section_id)


@router.post("/seats/hold", response_model=HoldResponse)
def hold_seats(
    request: SeatSelectionRequest,
    db: Session = Depends(get_db),
    policy: ExpiryPolicy = Depends(get_expiry_policy),
    clock: Clock = Depends(get_clock),
    current_buyer: str | None = Depends(get_current_buyer),
):
    service = ReservationService(db, policy, clock)
    try:
        result = service.hold(
            request.seat_ids,
            request.buyer_id,
            caller_id=current_buyer,
        )
    except SeatEngineError as exc:
        raise _http_error(exc) from exc

    if result.outcome is HoldOutcome.UNAVAILABLE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "code": "NO_SEATS_AVAILABLE",
                "message": result.message,
                "seat_ids": result.failed_seat_ids,
            },
        )

    return HoldResponse(
        held_seat_ids=result.held_seat_ids,
        requested_count=result.requested_count,
        held_count=result.held_count,
        failed_seat_ids=result.failed_seat_ids,
        hold_expires_at=result.hold_expires_at,
        outcome=result.outcome.value,
        message=result.message,
    )


@router.post("/seats/purchase", response_model=PurchaseResponse)
def purchase_seats(
    request: SeatSelectionRequest,
    db: Session = Depends(get_db),
    policy: ExpiryPolicy = Depends(get_expiry_policy),
    clock: Clock = Depends(get_clock),
    current_buyer: str | None = Depends(get_current_buyer),
):
    service = PurchaseService(db, policy, clock)
    try:
        order = service.purchase(
            request.seat_ids,
            request.buyer_id,
            caller_id=current_buyer,
        )
    except SeatEngineError as exc:
        raise _http_error(exc) from exc

    return PurchaseResponse(
        order_id=order.id,
        total_amount=order.total_amount,
    )


@router.post("/seats/cancel", response_model=CancelResponse)
def cancel_seats(
    request: SeatSelectionRequest,
    db: Session = Depends(get_db),
    policy: ExpiryPolicy = Depends(get_expiry_policy),
    clock: Clock = Depends(get_clock),
    current_buyer: str | None = Depends(get_current_buyer),
):
    service = CancellationService(db, policy, clock)
    try:
        released = service.cancel(
            request.seat_ids,
            request.buyer_id,
            caller_id=current_buyer,
        )
    except SeatEngineError as exc:
        raise _http_error(exc) from exc

    return CancelResponse(cancelled_seat_ids=released)


@router.get("/orders", response_model=list[OrderResponse])
def list_orders(
    db: Session = Depends(get_db),
    current_buyer: str | None = Depends(get_current_buyer),
):
    buyer_id = _require_buyer(current_buyer)
    return [_order_response(order) for order in OrderService(db).list_orders(buyer_id)]


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_buyer: str | None = Depends(get_current_buyer),
):
    buyer_id = _require_buyer(current_buyer)
    try:
        order = OrderService(db).get_order(order_id, buyer_id)
    except OrderNotFoundError as exc:
        raise _http_error(exc) from exc

    return _order_response(order)
