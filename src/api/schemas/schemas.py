from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class SeatSelectionRequest(BaseModel):
    buyer_id: str
    seat_ids: list[str]


class HoldResponse(BaseModel):
    held_seat_ids: list[str]
    requested_count: int
    held_count: int
    failed_seat_ids: list[str]
    hold_expires_at: datetime
    outcome: Literal["held", "partial", "unavailable"]
    message: str


class PurchaseResponse(BaseModel):
    order_id: str
    total_amount: Decimal


class CancelResponse(BaseModel):
    cancelled_seat_ids: list[str]


class SeatResponse(BaseModel):
    seat_id: str
    seat_label: str
    status: Literal["available", "held", "sold"]
    held_at: datetime | None = None
    hold_expires_at: datetime | None = None


class SectionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    total_seats: int = Field(gt=0)


class EventCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    venue: str = Field(min_length=1, max_length=128)
    starts_at: datetime
    sections: list[SectionCreate] = Field(min_length=1)


class SectionResponse(BaseModel):
    id: str
    name: str
    price: Decimal
    total_seats: int
    available_seats: int


class EventResponse(BaseModel):
    id: str
    name: str
    venue: str
    starts_at: datetime
    sections: list[SectionResponse]


class OrderLineResponse(BaseModel):
    seat_id: str
    seat_label: str
    price: Decimal


class OrderResponse(BaseModel):
    id: str
    buyer_id: str
    total_amount: Decimal
    payment_status: Literal["pending", "completed", "failed"]
    created_at: datetime
    lines: list[OrderLineResponse]
