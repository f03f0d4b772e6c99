from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, List

from pydantic import BaseModel, EmailStr, Field, field_validator

from .models import BookingStatus


# ==== Booking input ====

class BookingCreate(BaseModel):
    customer_name: str = Field(min_length=1, max_length=255)
    company: Optional[str] = None
    sale_owner: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    check_in: date
    check_out: date
    room_type: str = Field(min_length=1)
    number_of_rooms: int = Field(default=1, ge=1)
    rate: Decimal = Field(ge=0)
    payment_method: Optional[str] = None
    documents: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    class Config:
        extra = "forbid"
        str_strip_whitespace = True


class BookingUpdate(BaseModel):
    """Fields a booking patch may touch. Unset fields are left alone."""
    customer_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    company: Optional[str] = None
    sale_owner: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    room_type: Optional[str] = None
    number_of_rooms: Optional[int] = Field(default=None, ge=1)
    rate: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: Optional[str] = None
    documents: Optional[List[str]] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"
        str_strip_whitespace = True


class BookingAmend(BaseModel):
    changes: BookingUpdate
    amended_by: Optional[str] = None
    reason: Optional[str] = None

    class Config:
        extra = "forbid"


class BookingCancel(BaseModel):
    reason: str = Field(min_length=1)
    documents: List[str] = Field(default_factory=list)
    cancelled_by: Optional[str] = None

    class Config:
        extra = "forbid"
        str_strip_whitespace = True


class BookingFilters(BaseModel):
    status: Optional[BookingStatus] = None
    room_type: Optional[str] = None
    sale_owner: Optional[str] = None
    company: Optional[str] = None
    check_in_from: Optional[date] = None
    check_in_to: Optional[date] = None
    search: Optional[str] = None

    class Config:
        extra = "forbid"


class AvailabilityCheck(BaseModel):
    check_in: date
    check_out: date
    room_type: str
    exclude_booking_id: Optional[int] = None

    class Config:
        extra = "forbid"


# ==== Output ====

class ChangeRecordOut(BaseModel):
    field: str
    before: Any = None
    after: Any = None


class AmendmentLogEntryOut(BaseModel):
    timestamp: datetime
    amended_by: Optional[str] = None
    reason: Optional[str] = None
    changes: List[ChangeRecordOut]


class BookingOut(BaseModel):
    id: int
    booking_code: str
    customer_name: str
    company: Optional[str] = None
    sale_owner: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    check_in: date
    check_out: date
    room_type: str
    number_of_rooms: int
    rate: Decimal
    payment_method: Optional[str] = None
    status: BookingStatus
    hold_expiry: Optional[datetime] = None
    documents: Optional[List[str]] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    cancel_documents: Optional[List[str]] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    amendment_logs: List[AmendmentLogEntryOut] = Field(default_factory=list)
    last_amended_at: Optional[datetime] = None
    last_amended_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        use_enum_values = True
        from_attributes = True

    @field_validator("amendment_logs", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class RoomTypeOut(BaseModel):
    id: int
    name: str
    name_en: str
    total_rooms: int

    class Config:
        from_attributes = True


class BlackoutDateOut(BaseModel):
    id: int
    date: date
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class MinimumStayRuleOut(BaseModel):
    id: int
    start_date: date
    end_date: date
    min_nights: int

    class Config:
        from_attributes = True
