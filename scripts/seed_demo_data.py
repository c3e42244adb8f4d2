from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from src.application.provisioning_service import ProvisioningService, SectionPlan
from src.infrastructure.db.models import Base, Event
from src.infrastructure.db.session import SessionLocal, engine


def _dt(days_from_now: int, hour: int, minute: int) -> datetime:
    now = datetime.now(timezone.utc)
    target = now + timedelta(days=days_from_now)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0)


EVENT_DEFS = [
    {
        "name": "Symphony Under the Stars",
        "venue": "Riverside Amphitheatre",
        "starts_at": _dt(days_from_now=10, hour=19, minute=30),
        "sections": [
            SectionPlan(name="Orchestra", price=Decimal("120.00"), total_seats=40),
            SectionPlan(name="Balcony", price=Decimal("65.00"), total_seats=60),
        ],
    },
    {
        "name": "City Derby",
        "venue": "Municipal Stadium",
        "starts_at": _dt(days_from_now=15, hour=17, minute=0),
        "sections": [
            SectionPlan(name="North Stand", price=Decimal("35.00"), total_seats=120),
            SectionPlan(name="Lower Tier", price=Decimal("80.00"), total_seats=25),
        ],
    },
]


def seed_events(db) -> int:
    created = 0
    service = ProvisioningService(db)
    for item in EVENT_DEFS:
        existing = db.execute(
            select(Event).where(Event.name == item["name"])
        ).scalar_one_or_none()
        # Seats are never deleted, so an existing event is left untouched.
        if existing:
            continue

        service.provision_event(
            name=item["name"],
            venue=item["venue"],
            starts_at=item["starts_at"],
            sections=item["sections"],
        )
        created += 1
    return created


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = seed_events(db)
        db.commit()
        print(f"Seed complete: {created} demo events provisioned.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
