from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from src.domain.exceptions import EventNotFoundError, SectionNotFoundError
from src.domain.expiry import Clock, ExpiryPolicy, as_utc, utc_now
from src.domain.seat_labels import seat_label_sort_key
from src.domain.state_machine import SeatStatus
from src.infrastructure.db.models import Event, Section
from src.infrastructure.repositories.catalog_repository import CatalogRepository
from src.infrastructure.repositories.seat_repository import SeatRepository


@dataclass(frozen=True)
class SeatView:
    seat_id: str
    seat_label: str
    status: SeatStatus
    held_at: datetime | None
    hold_expires_at: datetime | None


@dataclass(frozen=True)
class SectionAvailability:
    section: Section
    available_seats: int


class AvailabilityService:
    """
    Read side of the seat store. Stale holds are reported as available
    even while their rows still say held.
    """

    def __init__(
        self,
        db: Session,
        policy: ExpiryPolicy,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.policy = policy
        self.clock = clock
        self.seat_repository = SeatRepository(db)
        self.catalog_repository = CatalogRepository(db)

    def availability(self, section_ids: Iterable[str]) -> dict[str, int]:
        """
        Available seat count for every requested section, in one query.
        Unknown or sold-out sections map to 0.
        """
        unique = list(dict.fromkeys(section_ids))
        if not unique:
            return {}

        cutoff = self.policy.cutoff(self.clock())
        counts = self.seat_repository.count_available(unique, cutoff)
        return {section_id: counts.get(section_id, 0) for section_id in unique}

    def list_all_seats(self, event_id: str, section_id: str) -> list[SeatView]:
        if self.catalog_repository.get_section(event_id, section_id) is None:
            raise SectionNotFoundError(section_id)

        now = self.clock()
        seats = self.seat_repository.list_for_section(event_id, section_id)
        views = []
        for seat in seats:
            if seat.status is SeatStatus.HELD and self.policy.is_stale(seat.held_at, now):
                views.append(
                    SeatView(seat.id, seat.seat_label, SeatStatus.AVAILABLE, None, None)
                )
                continue

            expires_at = None
            if seat.status is SeatStatus.HELD:
                expires_at = self.policy.expires_at(seat.held_at)
            views.append(
                SeatView(
                    seat_id=seat.id,
                    seat_label=seat.seat_label,
                    status=seat.status,
                    held_at=as_utc(seat.held_at) if seat.held_at else None,
                    hold_expires_at=expires_at,
                )
            )
        return sorted(views, key=lambda view: seat_label_sort_key(view.seat_label))

    def event_with_availability(self, event_id: str) -> tuple[Event, list[SectionAvailability]]:
        event = self.catalog_repository.get_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        counts = self.availability(section.id for section in event.sections)
        return event, [
            SectionAvailability(section=section, available_seats=counts[section.id])
            for section in event.sections
        ]
