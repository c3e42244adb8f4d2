# src/infrastructure/db/models.py

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Enum,
    Numeric,
    UniqueConstraint,
    CheckConstraint,
    ForeignKey,
    Index,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from src.infrastructure.db.session import Base
from src.domain.state_machine import SeatStatus, PaymentStatus


def _uuid() -> str:
    return str(uuid4())


class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    venue: Mapped[str] = mapped_column(String(128), nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    sections: Mapped[list["Section"]] = relationship(
        back_populates="event",
        order_by="Section.name",
    )


class Section(Base):
    """
    Seating section of an event. Available seat counts are derived
    from the seats table, never stored here.
    """

    __tablename__ = "sections"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    event_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("events.id"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_seats: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    event: Mapped[Event] = relationship(back_populates="sections")

    __table_args__ = (
        UniqueConstraint("event_id", "name", name="uq_section_event_name"),
        CheckConstraint("price >= 0", name="ck_section_price_nonnegative"),
        CheckConstraint("total_seats > 0", name="ck_section_total_seats_positive"),
    )


class Seat(Base):
    """
    One physical seat. The (event_id, section_id, seat_label) constraint
    is the conflict target for the conditional hold upsert.
    """

    __tablename__ = "seats"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    event_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("events.id"),
        nullable=False,
    )
    section_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("sections.id"),
        nullable=False,
    )
    seat_label: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[SeatStatus] = mapped_column(
        Enum(SeatStatus, name="seat_status"),
        nullable=False,
        default=SeatStatus.AVAILABLE,
    )
    holder_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    held_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    order_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("orders.id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    section: Mapped[Section] = relationship()

    __table_args__ = (
        UniqueConstraint(
            "event_id",
            "section_id",
            "seat_label",
            name="uq_seat_event_section_label",
        ),
        CheckConstraint(
            "status != 'HELD' OR (holder_id IS NOT NULL AND held_at IS NOT NULL)",
            name="ck_seat_held_has_holder",
        ),
        CheckConstraint(
            "status != 'SOLD' OR (order_id IS NOT NULL AND holder_id IS NOT NULL)",
            name="ck_seat_sold_has_order",
        ),
        CheckConstraint(
            "status != 'AVAILABLE' OR (holder_id IS NULL AND held_at IS NULL)",
            name="ck_seat_available_is_clear",
        ),
        Index("ix_seats_section_status", "section_id", "status"),
    )


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    buyer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.COMPLETED,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    lines: Mapped[list["OrderLine"]] = relationship(
        back_populates="order",
        order_by="OrderLine.seat_label",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_order_total_nonnegative"),
    )


class OrderLine(Base):
    """Price of one seat captured at the moment of sale."""

    __tablename__ = "order_lines"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    order_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("orders.id"),
        nullable=False,
    )
    seat_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("seats.id"),
        nullable=False,
    )
    seat_label: Mapped[str] = mapped_column(String(16), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    order: Mapped[Order] = relationship(back_populates="lines")

    __table_args__ = (
        UniqueConstraint("seat_id", name="uq_order_line_seat"),
        CheckConstraint("price >= 0", name="ck_order_line_price_nonnegative"),
    )
