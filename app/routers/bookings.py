from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Request, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..models import User, BookingStatus
from ..schemas import (
    AvailabilityCheck,
    BookingAmend,
    BookingCancel,
    BookingCreate,
    BookingFilters,
    BookingOut,
    BookingUpdate,
)
from ..security import require_user
from ..services import booking_service
from ..services.activity_log import record_activity
from ..services.booking_query import list_bookings

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


def _out(booking) -> dict:
    return BookingOut.model_validate(booking).model_dump(mode="json")


@router.post("/check-availability")
def api_check_availability(payload: AvailabilityCheck, db: Session = Depends(get_db), user: User = Depends(require_user)):
    available = booking_service.check_availability(
        db, payload.check_in, payload.check_out, payload.room_type, exclude_booking_id=payload.exclude_booking_id
    )
    return {"success": True, "data": {"available": available}}


@router.post("", status_code=201)
def api_create_booking(request: Request, payload: BookingCreate, db: Session = Depends(get_db), user: User = Depends(require_user)):
    b = booking_service.create_booking(db, payload)
    record_activity(db, user, "BOOKING_CREATE", f"{b.booking_code} {b.room_type} x{b.number_of_rooms} {b.check_in}..{b.check_out}", request)
    return {"success": True, "data": _out(b)}


@router.get("")
def api_list_bookings(
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status: Optional[BookingStatus] = None,
    room_type: Optional[str] = None,
    sale_owner: Optional[str] = None,
    company: Optional[str] = None,
    check_in_from: Optional[date] = None,
    check_in_to: Optional[date] = None,
    search: Optional[str] = None,
):
    filters = BookingFilters(
        status=status,
        room_type=room_type,
        sale_owner=sale_owner,
        company=company,
        check_in_from=check_in_from,
        check_in_to=check_in_to,
        search=search,
    )
    result = list_bookings(db, filters, page, limit)
    return {
        "success": True,
        "data": [_out(b) for b in result["items"]],
        "pagination": result["pagination"],
    }


@router.get("/{booking_key}")
def api_get_booking(booking_key: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return {"success": True, "data": _out(booking_service.get_booking(db, booking_key))}


@router.patch("/{booking_key}")
def api_update_booking(request: Request, booking_key: str, payload: BookingUpdate, db: Session = Depends(get_db), user: User = Depends(require_user)):
    b = booking_service.update_booking(db, booking_key, payload)
    fields = ", ".join(sorted(payload.model_dump(exclude_unset=True)))
    record_activity(db, user, "BOOKING_UPDATE", f"{b.booking_code}: {fields}", request)
    return {"success": True, "data": _out(b)}


@router.post("/{booking_key}/cancel")
def api_cancel_booking(request: Request, booking_key: str, payload: BookingCancel, db: Session = Depends(get_db), user: User = Depends(require_user)):
    b = booking_service.cancel_booking(db, booking_key, payload, actor=user.full_name)
    record_activity(db, user, "BOOKING_CANCEL", f"{b.booking_code} -> {b.status.value}: {b.cancel_reason}", request)
    return {"success": True, "data": _out(b)}


@router.post("/{booking_key}/amend")
def api_amend_booking(request: Request, booking_key: str, payload: BookingAmend, db: Session = Depends(get_db), user: User = Depends(require_user)):
    b = booking_service.amend_booking(db, booking_key, payload, actor=user.full_name)
    record_activity(db, user, "BOOKING_AMEND", b.booking_code, request)
    return {"success": True, "data": _out(b)}


@router.post("/{booking_key}/confirm")
def api_confirm_booking(request: Request, booking_key: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    b = booking_service.confirm_booking(db, booking_key)
    record_activity(db, user, "BOOKING_CONFIRM", b.booking_code, request)
    return {"success": True, "data": _out(b)}


@router.delete("/{booking_key}")
def api_delete_booking(request: Request, booking_key: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    booking_service.delete_booking(db, booking_key)
    record_activity(db, user, "BOOKING_DELETE", booking_key, request)
    return {"success": True, "message": "Booking deleted successfully"}
