import datetime as dt
from sqlalchemy import Integer, String, Date, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from ..db import Base

class BlackoutDate(Base):
    __tablename__ = "blackout_dates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, unique=True, nullable=False, index=True)
    reason: Mapped[str | None] = mapped_column(String(255))


class MinimumStayRule(Base):
    __tablename__ = "minimum_stay_rules"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_minimum_stay_rules_range"),
        CheckConstraint("min_nights >= 1", name="ck_minimum_stay_rules_min_nights"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    min_nights: Mapped[int] = mapped_column(Integer, nullable=False)
