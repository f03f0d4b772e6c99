import logging
from datetime import date

from sqlalchemy.orm import Session

from ..models import RoomType, BlackoutDate, MinimumStayRule

logger = logging.getLogger(__name__)

ROOM_TYPES = [
    {"name": "ห้องดีลักซ์", "name_en": "Deluxe Room", "total_rooms": 20},
    {"name": "ห้องซูพีเรียร์", "name_en": "Superior Room", "total_rooms": 15},
    {"name": "ห้องสวีท", "name_en": "Suite", "total_rooms": 8},
    {"name": "ห้องเอ็กเซ็กคิวทีฟ", "name_en": "Executive Suite", "total_rooms": 5},
]

BLACKOUT_DATES = [
    (date(2025, 12, 24), "Christmas Eve"),
    (date(2025, 12, 25), "Christmas Day"),
    (date(2025, 12, 31), "New Year Eve"),
    (date(2026, 1, 1), "New Year Day"),
]

MINIMUM_STAY_RULES = [
    (date(2025, 12, 20), date(2026, 1, 5), 3),
]


def seed_reference_data(db: Session) -> None:
    """Insert room types, blackout dates and minimum-stay rules into empty tables."""
    if not db.query(RoomType).first():
        db.add_all(RoomType(**rt) for rt in ROOM_TYPES)
        logger.info("Seeded %d room types", len(ROOM_TYPES))
    if not db.query(BlackoutDate).first():
        db.add_all(BlackoutDate(date=d, reason=reason) for d, reason in BLACKOUT_DATES)
        logger.info("Seeded %d blackout dates", len(BLACKOUT_DATES))
    if not db.query(MinimumStayRule).first():
        db.add_all(MinimumStayRule(start_date=s, end_date=e, min_nights=n) for s, e, n in MINIMUM_STAY_RULES)
        logger.info("Seeded %d minimum stay rules", len(MINIMUM_STAY_RULES))
    db.commit()
