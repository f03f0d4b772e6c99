"""
Shared fixtures.

The app reads its settings at import time, so the database URL and flags are
set before anything under ``app`` is imported. Every test starts from an
empty schema in a throwaway SQLite file.
"""
import os
import tempfile
from datetime import date, datetime
from decimal import Decimal

_TMP_DIR = tempfile.mkdtemp(prefix="hotel-booking-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TMP_DIR, "test.db")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEED_REFERENCE_DATA"] = "false"
os.environ["ADMIN_EMAIL"] = "admin@hotel-bangkok.com"
os.environ["ADMIN_PASSWORD"] = "admin12345"
os.environ["ADMIN_FULL_NAME"] = "Test Admin"

import pytest

from app import models  # noqa: F401
from app.db import Base, SessionLocal, engine
from app.models import BlackoutDate, MinimumStayRule, RoomType
from app.schemas import BookingCreate


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db(_fresh_schema):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def room_types(db):
    rows = [
        RoomType(name="Deluxe", name_en="Deluxe Room", total_rooms=20),
        RoomType(name="Suite", name_en="Suite Room", total_rooms=8),
        RoomType(name="Executive", name_en="Executive Suite", total_rooms=5),
    ]
    by_name = {rt.name: rt for rt in rows}
    db.add_all(rows)
    db.commit()
    return by_name


@pytest.fixture
def holiday_rules(db):
    db.add_all([
        BlackoutDate(date=date(2025, 12, 24), reason="Christmas Eve"),
        BlackoutDate(date=date(2025, 12, 25), reason="Christmas Day"),
        BlackoutDate(date=date(2025, 12, 31), reason="New Year Eve"),
        BlackoutDate(date=date(2026, 1, 1), reason="New Year Day"),
        MinimumStayRule(start_date=date(2025, 12, 20), end_date=date(2026, 1, 5), min_nights=3),
    ])
    db.commit()


@pytest.fixture
def make_payload():
    def _make(check_in="2025-12-01", check_out="2025-12-05", room_type="Deluxe", rooms=1, **extra):
        data = {
            "customer_name": "Thai Oil Co., Ltd.",
            "company": "Thai Oil Co., Ltd.",
            "sale_owner": "Somchai",
            "phone": "02-123-4567",
            "email": "booking@thaioil.co.th",
            "check_in": date.fromisoformat(check_in),
            "check_out": date.fromisoformat(check_out),
            "room_type": room_type,
            "number_of_rooms": rooms,
            "rate": Decimal("2500.00"),
            "payment_method": "Credit Term",
        }
        data.update(extra)
        return BookingCreate(**data)
    return _make


@pytest.fixture
def add_booking(db):
    """Insert a booking row directly, bypassing the lifecycle checks."""
    counter = {"n": 0}

    def _add(room_type, check_in, check_out, rooms, status=None, created_at=None, **extra):
        from app.models import Booking, BookingStatus
        counter["n"] += 1
        booking = Booking(
            booking_code=f"TEST-{counter['n']:04d}",
            customer_name=extra.pop("customer_name", f"Guest {counter['n']}"),
            check_in=date.fromisoformat(check_in),
            check_out=date.fromisoformat(check_out),
            room_type=room_type,
            number_of_rooms=rooms,
            rate=Decimal("1000"),
            status=status or BookingStatus.CONFIRMED,
            created_at=created_at or datetime(2025, 1, 1),
            **extra,
        )
        db.add(booking)
        db.commit()
        return booking
    return _add
