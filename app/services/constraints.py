from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ..models import BlackoutDate, MinimumStayRule


@dataclass(frozen=True)
class MinimumStayViolation:
    required: int
    actual: int


def check_blackout_dates(db: Session, check_in: date, check_out: date) -> list[BlackoutDate]:
    """Blackout dates falling within [check_in, check_out], both ends inclusive."""
    return (
        db.query(BlackoutDate)
        .filter(BlackoutDate.date >= check_in, BlackoutDate.date <= check_out)
        .order_by(BlackoutDate.date.asc())
        .all()
    )


def check_minimum_stay(db: Session, check_in: date, check_out: date) -> Optional[MinimumStayViolation]:
    """
    Compare the stay length against every rule whose range fully contains the stay.
    When several rules apply the largest minimum wins.
    """
    rules = (
        db.query(MinimumStayRule)
        .filter(MinimumStayRule.start_date <= check_in, MinimumStayRule.end_date >= check_out)
        .all()
    )
    if not rules:
        return None
    nights = (check_out - check_in).days
    required = max(r.min_nights for r in rules)
    if nights < required:
        return MinimumStayViolation(required=required, actual=nights)
    return None
