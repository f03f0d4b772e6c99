from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, Date, Numeric, Text, Enum, DateTime, JSON, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from ..db import Base

class BookingStatus(str, PyEnum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    VOID = "VOID"

# No further mutation once a booking reaches one of these
TERMINAL_STATUSES = (BookingStatus.CANCELLED, BookingStatus.VOID)

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out > check_in", name="ck_bookings_stay_range"),
        CheckConstraint("number_of_rooms >= 1", name="ck_bookings_number_of_rooms"),
        CheckConstraint("rate >= 0", name="ck_bookings_rate"),
        # composite index helps overlap searches
        Index("ix_bookings_room_type_stay", "room_type", "check_in", "check_out"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    booking_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255))
    sale_owner: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255))
    check_in: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    # Room type display name, not a foreign key
    room_type: Mapped[str] = mapped_column(String(100), nullable=False)
    number_of_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    payment_method: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[BookingStatus] = mapped_column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True)
    hold_expiry: Mapped[datetime | None] = mapped_column(DateTime)
    documents: Mapped[list | None] = mapped_column(JSON)
    notes: Mapped[str | None] = mapped_column(Text)

    # Cancellation metadata
    cancel_reason: Mapped[str | None] = mapped_column(Text)
    cancel_documents: Mapped[list | None] = mapped_column(JSON)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime)
    cancelled_by: Mapped[str | None] = mapped_column(String(255))

    # Amendment audit trail; entries are appended, never rewritten
    amendment_logs: Mapped[list | None] = mapped_column(JSON)
    last_amended_at: Mapped[datetime | None] = mapped_column(DateTime)
    last_amended_by: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
