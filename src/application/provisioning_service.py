from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging

from sqlalchemy.orm import Session

from src.domain.seat_labels import generate_seat_labels
from src.infrastructure.db.models import Event
from src.infrastructure.repositories.catalog_repository import CatalogRepository
from src.infrastructure.repositories.seat_repository import SeatRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionPlan:
    name: str
    price: Decimal
    total_seats: int


class ProvisioningService:
    """Creates an event, its sections and one seat per label, together."""

    def __init__(self, db: Session):
        self.db = db
        self.catalog_repository = CatalogRepository(db)
        self.seat_repository = SeatRepository(db)

    def provision_event(
        self,
        name: str,
        venue: str,
        starts_at: datetime,
        sections: list[SectionPlan],
    ) -> Event:
        if not sections:
            raise ValueError("At least one seating section is required")

        event = self.catalog_repository.add_event(name=name, venue=venue, starts_at=starts_at)
        for plan in sections:
            section = self.catalog_repository.add_section(
                event_id=event.id,
                name=plan.name,
                price=plan.price,
                total_seats=plan.total_seats,
            )
            self.seat_repository.create_seats(
                event_id=event.id,
                section_id=section.id,
                seat_labels=generate_seat_labels(plan.total_seats),
            )

        self.db.flush()
        self.db.refresh(event)
        logger.info(
            "Provisioned event %s with %s sections and %s seats",
            event.id,
            len(sections),
            sum(plan.total_seats for plan in sections),
        )
        return event
