"""
Booking lifecycle: create, confirm, update, amend, cancel and delete.

State machine::

    PENDING --confirm--> CONFIRMED
    PENDING --cancel---> VOID
    CONFIRMED --cancel-> CANCELLED

CANCELLED and VOID are terminal. Every mutation runs inside one transaction:
the room type row is locked, availability and business rules are checked,
and only then are changes written. Any failure rolls the whole thing back.
"""
import logging
import secrets
import string
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import (
    BlackoutViolationError,
    InsufficientAvailabilityError,
    InvalidStateError,
    MinimumStayViolationError,
    NotFoundError,
    ValidationError,
)
from ..models import Booking, BookingStatus, RoomType
from ..schemas import BookingAmend, BookingCancel, BookingCreate, BookingUpdate
from .availability import compute_availability, get_room_type, validate_stay
from .constraints import check_blackout_dates, check_minimum_stay

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits
_CODE_ATTEMPTS = 10

# Changing any of these re-checks availability
_STAY_FIELDS = ("check_in", "check_out", "room_type", "number_of_rooms")
# Cannot be cleared by a patch
_REQUIRED_FIELDS = ("customer_name", "check_in", "check_out", "room_type", "number_of_rooms", "rate")


@contextmanager
def _transaction(db: Session):
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


def _jsonable(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, BookingStatus):
        return value.value
    return value


def generate_booking_code(db: Session, day: Optional[date] = None) -> str:
    """BK<yymmdd>-<4 random chars>, re-drawn until no stored booking uses it."""
    day = day or date.today()
    prefix = f"{settings.BOOKING_CODE_PREFIX}{day.strftime('%y%m%d')}-"
    for _ in range(_CODE_ATTEMPTS):
        code = prefix + "".join(secrets.choice(_CODE_ALPHABET) for _ in range(4))
        if not db.query(Booking.id).filter(Booking.booking_code == code).first():
            return code
    raise RuntimeError(f"Could not allocate a unique booking code for prefix {prefix}")


def get_booking(db: Session, key: Union[int, str]) -> Booking:
    """Look a booking up by numeric id or by booking code."""
    key = str(key).strip()
    q = db.query(Booking)
    if key.isdecimal():
        q = q.filter(or_(Booking.id == int(key), Booking.booking_code == key))
    else:
        q = q.filter(Booking.booking_code == key)
    booking = q.first()
    if not booking:
        raise NotFoundError(f"Booking not found: {key}")
    return booking


def _reserve_rooms(db: Session, check_in: date, check_out: date, room_type_name: str, rooms: int, exclude_booking_id: Optional[int] = None) -> RoomType:
    validate_stay(check_in, check_out)
    if rooms is None or rooms < 1:
        raise ValidationError("number_of_rooms must be at least 1")
    room_type = get_room_type(db, room_type_name, for_update=True)
    available = compute_availability(db, check_in, check_out, room_type.name, exclude_booking_id=exclude_booking_id)
    if available < rooms:
        logger.warning(
            "Rejected %s x%d for %s..%s: only %d available",
            room_type.name, rooms, check_in, check_out, available,
        )
        raise InsufficientAvailabilityError(available=available, requested=rooms)
    return room_type


def _ensure_mutable(booking: Booking, verb: str) -> None:
    if booking.is_terminal:
        raise InvalidStateError(
            f"Cannot {verb} a {booking.status.value.lower()} booking", booking.status.value
        )


def _reject_cleared_required(changes: dict) -> None:
    cleared = [f for f in _REQUIRED_FIELDS if f in changes and changes[f] is None]
    if cleared:
        raise ValidationError(f"Fields cannot be cleared: {', '.join(cleared)}")


def _normalize_room_type(db: Session, changes: dict) -> None:
    if changes.get("room_type") is not None:
        changes["room_type"] = get_room_type(db, changes["room_type"]).name


def _recheck_stay(db: Session, booking: Booking, changes: dict) -> None:
    merged = {f: changes.get(f, getattr(booking, f)) for f in _STAY_FIELDS}
    _reserve_rooms(
        db,
        merged["check_in"],
        merged["check_out"],
        merged["room_type"],
        merged["number_of_rooms"],
        exclude_booking_id=booking.id,
    )


def create_booking(db: Session, data: BookingCreate) -> Booking:
    now = datetime.utcnow()
    with _transaction(db):
        room_type = _reserve_rooms(db, data.check_in, data.check_out, data.room_type, data.number_of_rooms)

        blackout = check_blackout_dates(db, data.check_in, data.check_out)
        if blackout:
            logger.warning("Rejected booking over blackout dates %s", [b.date.isoformat() for b in blackout])
            raise BlackoutViolationError([b.date for b in blackout])

        violation = check_minimum_stay(db, data.check_in, data.check_out)
        if violation:
            raise MinimumStayViolationError(required=violation.required, actual=violation.actual)

        booking = Booking(
            booking_code=generate_booking_code(db, now.date()),
            customer_name=data.customer_name,
            company=data.company,
            sale_owner=data.sale_owner,
            phone=data.phone,
            email=data.email,
            check_in=data.check_in,
            check_out=data.check_out,
            room_type=room_type.name,
            number_of_rooms=data.number_of_rooms,
            rate=data.rate,
            payment_method=data.payment_method,
            status=BookingStatus.PENDING,
            hold_expiry=now + timedelta(days=settings.BOOKING_HOLD_DAYS),
            documents=list(data.documents),
            notes=data.notes,
        )
        db.add(booking)
        db.flush()
    logger.info("Created booking %s (%s x%d, %s..%s)", booking.booking_code, booking.room_type, booking.number_of_rooms, booking.check_in, booking.check_out)
    return booking


def confirm_booking(db: Session, key: Union[int, str]) -> Booking:
    with _transaction(db):
        booking = get_booking(db, key)
        if booking.status != BookingStatus.PENDING:
            raise InvalidStateError(
                f"Only pending bookings can be confirmed (status is {booking.status.value})",
                booking.status.value,
            )
        booking.status = BookingStatus.CONFIRMED
        booking.hold_expiry = None
    logger.info("Confirmed booking %s", booking.booking_code)
    return booking


def update_booking(db: Session, key: Union[int, str], patch: BookingUpdate) -> Booking:
    """Plain field update. Does not touch the amendment log."""
    changes = patch.model_dump(exclude_unset=True)
    with _transaction(db):
        booking = get_booking(db, key)
        _ensure_mutable(booking, "update")
        _reject_cleared_required(changes)
        _normalize_room_type(db, changes)
        if any(f in changes and changes[f] != getattr(booking, f) for f in _STAY_FIELDS):
            _recheck_stay(db, booking, changes)
        for field, value in changes.items():
            setattr(booking, field, value)
        booking.last_amended_at = datetime.utcnow()
    logger.info("Updated booking %s (%s)", booking.booking_code, ", ".join(sorted(changes)) or "no fields")
    return booking


def amend_booking(db: Session, key: Union[int, str], amendment: BookingAmend, actor: Optional[str] = None) -> Booking:
    """
    Audited update. Only fields whose value actually changes are written, and
    they are recorded as one entry appended to ``amendment_logs``. When nothing
    differs the booking is returned untouched.
    """
    actor = amendment.amended_by or actor
    if not actor:
        raise ValidationError("amended_by is required")
    requested = amendment.changes.model_dump(exclude_unset=True)
    with _transaction(db):
        booking = get_booking(db, key)
        _ensure_mutable(booking, "amend")
        _reject_cleared_required(requested)
        _normalize_room_type(db, requested)

        changed = {f: v for f, v in requested.items() if getattr(booking, f) != v}
        if not changed:
            logger.debug("Amendment of %s changes nothing; skipped", booking.booking_code)
            return booking

        if any(f in changed for f in _STAY_FIELDS):
            _recheck_stay(db, booking, changed)

        now = datetime.utcnow()
        entry = {
            "timestamp": now.isoformat(),
            "amended_by": actor,
            "reason": amendment.reason,
            "changes": [
                {"field": f, "before": _jsonable(getattr(booking, f)), "after": _jsonable(v)}
                for f, v in changed.items()
            ],
        }
        for field, value in changed.items():
            setattr(booking, field, value)
        # new list so the JSON column is flagged dirty; earlier entries are kept as-is
        booking.amendment_logs = [*(booking.amendment_logs or []), entry]
        booking.last_amended_at = now
        booking.last_amended_by = actor
    logger.info("Amended booking %s by %s (%s)", booking.booking_code, actor, ", ".join(changed))
    return booking


def cancel_booking(db: Session, key: Union[int, str], data: BookingCancel, actor: Optional[str] = None) -> Booking:
    """A pending booking becomes VOID; a confirmed one becomes CANCELLED."""
    with _transaction(db):
        booking = get_booking(db, key)
        if booking.is_terminal:
            raise InvalidStateError(
                f"Booking is already {booking.status.value.lower()}", booking.status.value
            )
        booking.status = BookingStatus.VOID if booking.status == BookingStatus.PENDING else BookingStatus.CANCELLED
        booking.cancel_reason = data.reason
        booking.cancel_documents = list(data.documents)
        booking.cancelled_at = datetime.utcnow()
        booking.cancelled_by = data.cancelled_by or actor
    logger.info("Booking %s -> %s", booking.booking_code, booking.status.value)
    return booking


def delete_booking(db: Session, key: Union[int, str]) -> None:
    """Hard delete. The record is gone for good."""
    with _transaction(db):
        booking = get_booking(db, key)
        code = booking.booking_code
        db.delete(booking)
    logger.info("Deleted booking %s", code)


def check_availability(db: Session, check_in: date, check_out: date, room_type: str, exclude_booking_id: Optional[int] = None) -> int:
    with _transaction(db):
        return compute_availability(db, check_in, check_out, room_type, exclude_booking_id=exclude_booking_id)
