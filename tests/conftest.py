import pytest
from datetime import datetime, timedelta
from typing import Optional

from fakeredis import FakeRedis
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from adventure_core import Coordinate, MediaRecord, PlaceLabels

from backend.app import models  # noqa: F401  registers tables

TOKYO = (35.6762, 139.6503)


def make_record(
    media_id: str,
    captured_at: datetime,
    position: Optional[tuple] = TOKYO,
    city: Optional[str] = None,
    state: Optional[str] = None,
    country: Optional[str] = None,
) -> MediaRecord:
    return MediaRecord(
        id=media_id,
        captured_at=captured_at,
        coordinate=Coordinate(lat=position[0], lng=position[1]) if position else None,
        place=PlaceLabels(city=city, state=state, country=country),
    )


def make_trip(
    prefix: str,
    start: datetime,
    count: int,
    position: tuple = TOKYO,
    step: timedelta = timedelta(minutes=20),
    city: Optional[str] = "Tokyo",
    country: Optional[str] = "Japan",
):
    """`count` records at one place, `step` apart, drifting ~500 m per photo."""
    return [
        make_record(
            f"{prefix}-{i}",
            start + step * i,
            position=(position[0] + 0.005 * i, position[1]),
            city=city,
            country=country,
        )
        for i in range(count)
    ]


def thumbnail(media_id: str) -> str:
    return f"https://photos.example/{media_id}.jpg"


@pytest.fixture
def record():
    """Factory for a single MediaRecord."""
    return make_record


@pytest.fixture
def trip():
    """Factory for a tight run of records at one place."""
    return make_trip


@pytest.fixture
def resolve():
    """Thumbnail URL resolver."""
    return thumbnail


@pytest.fixture
def test_engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def test_db(test_engine):
    """Create an in-memory test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def fake_redis():
    return FakeRedis()
