from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..config import settings
from ..models import Booking, RoomType
from ..schemas import BookingFilters
from .pagination import contains_pattern, paginate


def _room_type_name(db: Session, name: str) -> str:
    # bookings store the canonical name; accept the English one too
    room_type = db.query(RoomType).filter(or_(RoomType.name == name, RoomType.name_en == name)).first()
    return room_type.name if room_type else name


def filtered_bookings(db: Session, filters: BookingFilters):
    q = db.query(Booking)
    if filters.status:
        q = q.filter(Booking.status == filters.status)
    if filters.room_type:
        q = q.filter(Booking.room_type == _room_type_name(db, filters.room_type))
    if filters.sale_owner:
        q = q.filter(Booking.sale_owner == filters.sale_owner)
    if filters.company:
        q = q.filter(Booking.company == filters.company)
    if filters.check_in_from:
        q = q.filter(Booking.check_in >= filters.check_in_from)
    if filters.check_in_to:
        q = q.filter(Booking.check_in <= filters.check_in_to)
    if filters.search and filters.search.strip():
        term = contains_pattern(filters.search.strip())
        q = q.filter(
            or_(
                Booking.booking_code.ilike(term, escape="\\"),
                Booking.customer_name.ilike(term, escape="\\"),
                Booking.phone.ilike(term, escape="\\"),
                Booking.email.ilike(term, escape="\\"),
                Booking.company.ilike(term, escape="\\"),
            )
        )
    return q


def list_bookings(db: Session, filters: Optional[BookingFilters] = None, page: int = 1, limit: Optional[int] = None) -> dict:
    """Newest bookings first, filtered and paginated."""
    q = filtered_bookings(db, filters or BookingFilters())
    q = q.order_by(Booking.created_at.desc(), Booking.id.desc())
    items, pagination = paginate(q, page, settings.DEFAULT_PAGE_SIZE if limit is None else limit)
    return {"items": items, "pagination": pagination}
