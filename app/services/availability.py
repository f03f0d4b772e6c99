from datetime import date, timedelta
from typing import Iterator, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models import Booking, RoomType
from ..models.booking import TERMINAL_STATUSES


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """Yield every night of the half-open stay [check_in, check_out)."""
    night = check_in
    while night < check_out:
        yield night
        night += timedelta(days=1)


def validate_stay(check_in: date, check_out: date) -> None:
    if check_in is None or check_out is None:
        raise ValidationError("check_in and check_out are required")
    if check_out <= check_in:
        raise ValidationError("check_out must be after check_in")


def get_room_type(db: Session, name: str, for_update: bool = False) -> RoomType:
    """
    Resolve a room type by its display name or English name.

    With ``for_update`` the row is locked for the rest of the transaction so
    competing mutations for the same room type queue behind each other.
    """
    q = db.query(RoomType).filter(or_(RoomType.name == name, RoomType.name_en == name))
    if for_update:
        q = q.with_for_update()
    room_type = q.first()
    if not room_type:
        raise NotFoundError(f"Room type not found: {name}")
    return room_type


def overlapping_bookings(db: Session, check_in: date, check_out: date, room_type_name: str, exclude_booking_id: Optional[int] = None) -> list[Booking]:
    """Active bookings of a room type sharing at least one night with [check_in, check_out)."""
    q = db.query(Booking).filter(
        Booking.room_type == room_type_name,
        Booking.status.notin_(TERMINAL_STATUSES),
        Booking.check_in < check_out,
        Booking.check_out > check_in,
    )
    if exclude_booking_id is not None:
        q = q.filter(Booking.id != exclude_booking_id)
    return q.all()


def compute_availability(db: Session, check_in: date, check_out: date, room_type_name: str, exclude_booking_id: Optional[int] = None, for_update: bool = False) -> int:
    """
    Number of rooms of a type still free on every night of the stay.

    The result is the worst night in the range: a multi-night booking has to
    hold its rooms on each night it spans. Never negative.
    """
    validate_stay(check_in, check_out)
    room_type = get_room_type(db, room_type_name, for_update=for_update)
    bookings = overlapping_bookings(db, check_in, check_out, room_type.name, exclude_booking_id)

    min_available = room_type.total_rooms
    for night in iter_nights(check_in, check_out):
        booked = sum(b.number_of_rooms for b in bookings if b.check_in <= night < b.check_out)
        min_available = min(min_available, room_type.total_rooms - booked)
    return max(0, min_available)
