# src/infrastructure/repositories/catalog_repository.py

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select

from src.infrastructure.db.models import Event, Section


class CatalogRepository:
    """Read-mostly event and section reference data."""

    def __init__(self, db: Session):
        self.db = db

    def get_event(self, event_id: str) -> Event | None:
        stmt = (
            select(Event)
            .where(Event.id == event_id)
            .options(selectinload(Event.sections))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_section(self, event_id: str, section_id: str) -> Section | None:
        stmt = (
            select(Section)
            .where(Section.id == section_id)
            .where(Section.event_id == event_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_event(
        self,
        name: str,
        venue: str,
        starts_at: datetime,
    ) -> Event:
        event = Event(name=name, venue=venue, starts_at=starts_at)
        self.db.add(event)
        self.db.flush()
        return event

    def add_section(
        self,
        event_id: str,
        name: str,
        price: Decimal,
        total_seats: int,
    ) -> Section:
        section = Section(
            event_id=event_id,
            name=name,
            price=price,
            total_seats=total_seats,
        )
        self.db.add(section)
        self.db.flush()
        return section
