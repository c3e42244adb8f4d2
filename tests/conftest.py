import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.pool import StaticPool

from src.application.provisioning_service import ProvisioningService, SectionPlan
from src.domain.expiry import ExpiryPolicy
from src.infrastructure.db.models import Base, Seat
from src.infrastructure.db.session import build_session_factory, get_db_session


HOLD_TTL = timedelta(seconds=10)


class FrozenClock:
    """Clock that only moves when a test says so."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@dataclass
class ProvisionedEvent:
    event_id: str
    sections: dict[str, str]
    seats: dict[str, str]

    def seat(self, section: str, label: str) -> str:
        return self.seats[f"{section}:{label}"]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 1, 18, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def policy():
    return ExpiryPolicy(ttl=HOLD_TTL)


def provision_event(session_factory, sections) -> ProvisionedEvent:
    with get_db_session(session_factory) as db:
        event = ProvisioningService(db).provision_event(
            name="Spring Gala",
            venue="Main Hall",
            starts_at=datetime(2026, 4, 1, 19, 30, tzinfo=timezone.utc),
            sections=[
                SectionPlan(name=name, price=Decimal(price), total_seats=total)
                for name, price, total in sections
            ],
        )
        section_ids = {section.name: section.id for section in event.sections}
        names = {section_id: name for name, section_id in section_ids.items()}
        seats = db.execute(select(Seat).where(Seat.event_id == event.id)).scalars().all()
        return ProvisionedEvent(
            event_id=event.id,
            sections=section_ids,
            seats={f"{names[seat.section_id]}:{seat.seat_label}": seat.id for seat in seats},
        )


@pytest.fixture
def provision(session_factory):
    return lambda sections: provision_event(session_factory, sections)


@pytest.fixture
def gala(session_factory):
    return provision_event(
        session_factory,
        [
            ("Floor", "10.00", 5),
            ("Balcony", "15.00", 3),
            ("Box", "25.00", 2),
        ],
    )


@pytest.fixture
def run(session_factory):
    """Runs fn(db) in its own committed unit of work, like one request."""

    def _run(fn):
        with get_db_session(session_factory) as db:
            return fn(db)

    return _run


@pytest.fixture
def client(session_factory, clock, policy):
    from src.main import app
    from src.api.routes.routes import get_db, get_clock, get_expiry_policy

    def _get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_expiry_policy] = lambda: policy
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def load_seats(run):
    """Fresh read of seat rows, keyed by id."""

    def _load(seat_ids):
        seats = run(
            lambda db: db.execute(select(Seat).where(Seat.id.in_(seat_ids))).scalars().all()
        )
        return {seat.id: seat for seat in seats}

    return _load
