# src/infrastructure/repositories/seat_repository.py

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy.orm import Session
from sqlalchemy import select, update, func, and_, or_
from sqlalchemy.dialects import postgresql, sqlite

from src.infrastructure.db.models import Seat, Section
from src.domain.expiry import as_utc
from src.domain.state_machine import SeatStatus


_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_SEAT_IDENTITY = ["event_id", "section_id", "seat_label"]


def _claimable(cutoff: datetime):
    """Available, or held by anyone since before the cutoff."""
    return or_(
        Seat.status == SeatStatus.AVAILABLE,
        and_(Seat.status == SeatStatus.HELD, Seat.held_at < cutoff),
    )


def _held_by(buyer_id: str, cutoff: datetime):
    return and_(
        Seat.status == SeatStatus.HELD,
        Seat.holder_id == buyer_id,
        Seat.held_at >= cutoff,
    )


class SeatRepository:

    def __init__(self, db: Session):
        self.db = db

    def create_seats(
        self,
        event_id: str,
        section_id: str,
        seat_labels: Iterable[str],
    ) -> list[Seat]:
        seats = [
            Seat(
                event_id=event_id,
                section_id=section_id,
                seat_label=label,
                status=SeatStatus.AVAILABLE,
            )
            for label in seat_labels
        ]
        self.db.add_all(seats)
        return seats

    def list_for_section(self, event_id: str, section_id: str) -> list[Seat]:
        stmt = (
            select(Seat)
            .where(Seat.event_id == event_id)
            .where(Seat.section_id == section_id)
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def lock_seats(self, seat_ids: list[str]) -> list[Seat]:
        stmt = (
            select(Seat)
            .where(Seat.id.in_(seat_ids))
            .order_by(Seat.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def lock_with_prices(self, seat_ids: list[str]) -> list[tuple[Seat, Decimal]]:
        """
        SELECT ... FOR UPDATE on the seat rows, joined with the section price.
        Concurrent purchases and cancels of the same seats queue behind this.
        """
        stmt = (
            select(Seat, Section.price)
            .join(Section, Seat.section_id == Section.id)
            .where(Seat.id.in_(seat_ids))
            .order_by(Seat.id)
            .with_for_update(of=Seat)
            .execution_options(populate_existing=True)
        )
        return [(seat, price) for seat, price in self.db.execute(stmt).all()]

    def identities(self, seat_ids: list[str]) -> dict[str, tuple[str, str, str]]:
        """
        Immutable (event_id, section_id, seat_label) keys for the given ids.
        Unknown ids are left out.
        """
        stmt = select(
            Seat.id,
            Seat.event_id,
            Seat.section_id,
            Seat.seat_label,
        ).where(Seat.id.in_(seat_ids))
        return {
            row.id: (row.event_id, row.section_id, row.seat_label)
            for row in self.db.execute(stmt)
        }

    def try_hold(
        self,
        identity: tuple[str, str, str],
        buyer_id: str,
        now: datetime,
        cutoff: datetime,
    ) -> str | None:
        """
        INSERT ... ON CONFLICT (event_id, section_id, seat_label) DO UPDATE
        ... WHERE <claimable> RETURNING id

        One statement per seat, so the store decides every race. Returns the
        seat id when this buyer now holds the seat, None when the condition
        failed.
        """
        event_id, section_id, seat_label = identity
        insert = self._insert()

        stmt = insert(Seat).values(
            event_id=event_id,
            section_id=section_id,
            seat_label=seat_label,
            status=SeatStatus.HELD,
            holder_id=buyer_id,
            held_at=as_utc(now),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=_SEAT_IDENTITY,
            set_={
                "status": stmt.excluded.status,
                "holder_id": stmt.excluded.holder_id,
                "held_at": stmt.excluded.held_at,
            },
            where=_claimable(cutoff),
        ).returning(Seat.id)

        return self.db.execute(stmt).scalar_one_or_none()

    def mark_sold(
        self,
        seat_ids: list[str],
        buyer_id: str,
        order_id: str,
        cutoff: datetime,
    ) -> int:
        stmt = (
            update(Seat)
            .where(Seat.id.in_(seat_ids))
            .where(_held_by(buyer_id, cutoff))
            .values(
                status=SeatStatus.SOLD,
                held_at=None,
                order_id=order_id,
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def release(
        self,
        seat_ids: list[str],
        buyer_id: str,
        cutoff: datetime,
    ) -> int:
        stmt = (
            update(Seat)
            .where(Seat.id.in_(seat_ids))
            .where(_held_by(buyer_id, cutoff))
            .values(
                status=SeatStatus.AVAILABLE,
                holder_id=None,
                held_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def release_expired(self, cutoff: datetime) -> int:
        stmt = (
            update(Seat)
            .where(Seat.status == SeatStatus.HELD)
            .where(Seat.held_at < cutoff)
            .values(
                status=SeatStatus.AVAILABLE,
                holder_id=None,
                held_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def count_available(
        self,
        section_ids: list[str],
        cutoff: datetime,
    ) -> dict[str, int]:
        stmt = (
            select(Seat.section_id, func.count(Seat.id))
            .where(Seat.section_id.in_(section_ids))
            .where(_claimable(cutoff))
            .group_by(Seat.section_id)
        )
        return {section_id: count for section_id, count in self.db.execute(stmt).all()}

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return _UPSERT_DIALECTS[dialect]
        except KeyError:
            raise NotImplementedError(
                f"Conditional seat upsert is not supported on {dialect}"
            ) from None
