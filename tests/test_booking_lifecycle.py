import re
from collections import Counter
from datetime import date, datetime, timedelta
from decimal import Decimal

import pydantic
import pytest

from app.errors import (
    BlackoutViolationError,
    InsufficientAvailabilityError,
    InvalidStateError,
    MinimumStayViolationError,
    NotFoundError,
    ValidationError,
)
from app.models import Booking, BookingStatus
from app.schemas import BookingAmend, BookingCancel, BookingUpdate
from app.services import booking_service
from app.services.availability import compute_availability, iter_nights


# ==== create ====

def test_create_starts_pending_with_seven_day_hold(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())

    assert booking.status == BookingStatus.PENDING
    assert re.fullmatch(r"BK\d{6}-[A-Z0-9]{4}", booking.booking_code)
    expected_expiry = datetime.utcnow() + timedelta(days=7)
    assert abs(booking.hold_expiry - expected_expiry) < timedelta(minutes=1)
    assert booking.amendment_logs is None
    assert booking.documents == []


def test_create_stores_canonical_room_type_name(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload(room_type="Deluxe Room"))
    assert booking.room_type == "Deluxe"


def test_create_respects_worst_night(db, room_types, make_payload):
    booking_service.create_booking(db, make_payload("2025-12-01", "2025-12-05", rooms=15))

    with pytest.raises(InsufficientAvailabilityError) as exc:
        booking_service.create_booking(db, make_payload("2025-12-03", "2025-12-04", rooms=6))
    assert exc.value.available == 5
    assert exc.value.requested == 6

    booking = booking_service.create_booking(db, make_payload("2025-12-03", "2025-12-04", rooms=5))
    assert booking.number_of_rooms == 5
    assert db.query(Booking).count() == 2


def test_create_over_blackout_fails(db, room_types, holiday_rules, make_payload):
    with pytest.raises(BlackoutViolationError) as exc:
        booking_service.create_booking(db, make_payload("2025-12-23", "2025-12-26"))
    assert exc.value.dates == [date(2025, 12, 24), date(2025, 12, 25)]
    assert db.query(Booking).count() == 0


def test_create_shorter_than_minimum_stay_fails(db, room_types, holiday_rules, make_payload):
    with pytest.raises(MinimumStayViolationError) as exc:
        booking_service.create_booking(db, make_payload("2025-12-27", "2025-12-29"))
    assert (exc.value.required, exc.value.actual) == (3, 2)
    assert db.query(Booking).count() == 0


def test_create_with_checkout_not_after_checkin_fails(db, room_types, make_payload):
    with pytest.raises(ValidationError):
        booking_service.create_booking(db, make_payload("2025-12-05", "2025-12-05"))
    with pytest.raises(ValidationError):
        booking_service.create_booking(db, make_payload("2025-12-05", "2025-12-01"))


def test_create_for_unknown_room_type_fails(db, room_types, make_payload):
    with pytest.raises(NotFoundError):
        booking_service.create_booking(db, make_payload(room_type="Penthouse"))


def test_customer_name_is_trimmed(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload(customer_name="  Thai Oil Co., Ltd.  "))
    assert booking.customer_name == "Thai Oil Co., Ltd."


@pytest.mark.parametrize("name", ["", "   ", "\t\n"])
def test_blank_customer_name_is_rejected(make_payload, name):
    with pytest.raises(pydantic.ValidationError):
        make_payload(customer_name=name)


@pytest.mark.parametrize("email", ["not-an-email", "guest@", "@thaioil.co.th", "two@@signs.com"])
def test_malformed_email_is_rejected(make_payload, email):
    with pytest.raises(pydantic.ValidationError):
        make_payload(email=email)


def test_blank_patch_name_is_rejected():
    with pytest.raises(pydantic.ValidationError):
        BookingUpdate(customer_name="  ")


# ==== lookup / delete ====

def test_get_by_id_or_code(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    assert booking_service.get_booking(db, booking.id).id == booking.id
    assert booking_service.get_booking(db, str(booking.id)).id == booking.id
    assert booking_service.get_booking(db, booking.booking_code).id == booking.id
    with pytest.raises(NotFoundError):
        booking_service.get_booking(db, "BK000000-XXXX")


@pytest.mark.parametrize("key", ["\u00b2", "\u2460", "12\u00b3"])
def test_lookup_with_non_decimal_digits_is_not_found(db, room_types, make_payload, key):
    booking_service.create_booking(db, make_payload())
    with pytest.raises(NotFoundError):
        booking_service.get_booking(db, key)


def test_delete_removes_record(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload(rooms=20))
    code = booking.booking_code
    booking_service.delete_booking(db, code)

    with pytest.raises(NotFoundError):
        booking_service.get_booking(db, code)
    assert compute_availability(db, date(2025, 12, 1), date(2025, 12, 5), "Deluxe") == 20
    with pytest.raises(NotFoundError):
        booking_service.delete_booking(db, code)


# ==== confirm ====

def test_confirm_clears_hold_and_rejects_second_confirm(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    confirmed = booking_service.confirm_booking(db, booking.booking_code)
    assert confirmed.status == BookingStatus.CONFIRMED
    assert confirmed.hold_expiry is None

    with pytest.raises(InvalidStateError):
        booking_service.confirm_booking(db, booking.booking_code)


def test_confirm_cancelled_booking_fails(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    booking_service.cancel_booking(db, booking.id, BookingCancel(reason="Customer cancelled"), actor="Admin")
    with pytest.raises(InvalidStateError):
        booking_service.confirm_booking(db, booking.id)


# ==== cancel ====

def test_cancel_pending_booking_voids_it(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    cancelled = booking_service.cancel_booking(
        db, booking.id, BookingCancel(reason="System error", documents=["memo.pdf"]), actor="Somchai"
    )
    assert cancelled.status == BookingStatus.VOID
    assert cancelled.cancel_reason == "System error"
    assert cancelled.cancel_documents == ["memo.pdf"]
    assert cancelled.cancelled_by == "Somchai"
    assert cancelled.cancelled_at is not None


def test_cancel_confirmed_booking_marks_it_cancelled(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    booking_service.confirm_booking(db, booking.id)
    cancelled = booking_service.cancel_booking(
        db, booking.id, BookingCancel(reason="No show", cancelled_by="Front desk"), actor="Somchai"
    )
    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancelled_by == "Front desk"


def test_cancel_twice_fails(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    booking_service.confirm_booking(db, booking.id)
    booking_service.cancel_booking(db, booking.id, BookingCancel(reason="No show"))
    with pytest.raises(InvalidStateError):
        booking_service.cancel_booking(db, booking.id, BookingCancel(reason="Again"))


def test_cancel_void_booking_fails(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    booking_service.cancel_booking(db, booking.id, BookingCancel(reason="Duplicate"))
    with pytest.raises(InvalidStateError):
        booking_service.cancel_booking(db, booking.id, BookingCancel(reason="Again"))


def test_cancel_releases_rooms(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload(rooms=20))
    with pytest.raises(InsufficientAvailabilityError):
        booking_service.create_booking(db, make_payload(rooms=1))
    booking_service.cancel_booking(db, booking.id, BookingCancel(reason="Customer cancelled"))
    assert booking_service.create_booking(db, make_payload(rooms=1)).status == BookingStatus.PENDING


# ==== update ====

def test_update_changes_fields_without_audit_entry(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    updated = booking_service.update_booking(db, booking.id, BookingUpdate(phone="081-111-1111", notes="VIP"))
    assert updated.phone == "081-111-1111"
    assert updated.notes == "VIP"
    assert updated.last_amended_at is not None
    assert updated.amendment_logs is None
    assert updated.status == BookingStatus.PENDING


def test_update_rechecks_availability_excluding_itself(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload(rooms=15))
    # growing into the remaining 5 rooms only works if its own 15 are not counted twice
    updated = booking_service.update_booking(db, booking.id, BookingUpdate(number_of_rooms=20))
    assert updated.number_of_rooms == 20

    with pytest.raises(InsufficientAvailabilityError):
        booking_service.update_booking(db, booking.id, BookingUpdate(number_of_rooms=21))
    db.expire_all()
    assert booking_service.get_booking(db, booking.id).number_of_rooms == 20


def test_update_into_full_dates_fails(db, room_types, make_payload):
    booking_service.create_booking(db, make_payload("2025-12-10", "2025-12-12", room_type="Executive", rooms=5))
    other = booking_service.create_booking(db, make_payload("2025-12-01", "2025-12-05", room_type="Executive", rooms=2))
    with pytest.raises(InsufficientAvailabilityError):
        booking_service.update_booking(db, other.id, BookingUpdate(check_in=date(2025, 12, 9), check_out=date(2025, 12, 11)))


def test_update_with_reversed_dates_fails(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    with pytest.raises(ValidationError):
        booking_service.update_booking(db, booking.id, BookingUpdate(check_out=date(2025, 11, 30)))


def test_update_cannot_clear_required_field(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    with pytest.raises(ValidationError):
        booking_service.update_booking(db, booking.id, BookingUpdate(customer_name=None))


def test_update_terminal_booking_fails(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    booking_service.cancel_booking(db, booking.id, BookingCancel(reason="Duplicate"))
    with pytest.raises(InvalidStateError):
        booking_service.update_booking(db, booking.id, BookingUpdate(notes="late note"))


# ==== amend ====

def test_amend_appends_one_entry_with_every_changed_field(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    amended = booking_service.amend_booking(
        db,
        booking.booking_code,
        BookingAmend(
            changes=BookingUpdate(check_out=date(2025, 12, 6), rate=Decimal("2800"), phone="02-123-4567"),
            amended_by="Somying",
            reason="Guest extended stay",
        ),
    )
    assert amended.check_out == date(2025, 12, 6)
    assert amended.rate == Decimal("2800")
    assert amended.last_amended_by == "Somying"
    assert len(amended.amendment_logs) == 1

    entry = amended.amendment_logs[0]
    assert entry["amended_by"] == "Somying"
    assert entry["reason"] == "Guest extended stay"
    # phone did not change, so it is not recorded
    assert entry["changes"] == [
        {"field": "check_out", "before": "2025-12-05", "after": "2025-12-06"},
        {"field": "rate", "before": "2500.00", "after": "2800"},
    ]


def test_amend_without_differences_is_a_no_op(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    result = booking_service.amend_booking(
        db,
        booking.id,
        BookingAmend(changes=BookingUpdate(customer_name="Thai Oil Co., Ltd.", room_type="Deluxe Room", number_of_rooms=1)),
        actor="Somying",
    )
    assert result.amendment_logs is None
    assert result.last_amended_at is None
    assert result.last_amended_by is None


def test_amend_log_is_append_only(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    booking_service.amend_booking(db, booking.id, BookingAmend(changes=BookingUpdate(notes="first")), actor="A")
    first_entry = dict(booking_service.get_booking(db, booking.id).amendment_logs[0])
    booking_service.amend_booking(db, booking.id, BookingAmend(changes=BookingUpdate(notes="second")), actor="B")

    logs = booking_service.get_booking(db, booking.id).amendment_logs
    assert len(logs) == 2
    assert logs[0] == first_entry
    assert logs[1]["changes"] == [{"field": "notes", "before": "first", "after": "second"}]
    assert logs[1]["amended_by"] == "B"


def test_amend_rejected_for_availability_leaves_booking_untouched(db, room_types, make_payload):
    booking_service.create_booking(db, make_payload(room_type="Suite", rooms=6))
    booking = booking_service.create_booking(db, make_payload(room_type="Suite", rooms=1))
    with pytest.raises(InsufficientAvailabilityError):
        booking_service.amend_booking(
            db, booking.id, BookingAmend(changes=BookingUpdate(number_of_rooms=3, notes="more")), actor="A"
        )
    db.expire_all()
    reloaded = booking_service.get_booking(db, booking.id)
    assert reloaded.number_of_rooms == 1
    assert reloaded.notes is None
    assert reloaded.amendment_logs is None


def test_amend_moving_room_type_checks_new_inventory(db, room_types, make_payload):
    booking_service.create_booking(db, make_payload(room_type="Executive", rooms=5))
    booking = booking_service.create_booking(db, make_payload(room_type="Deluxe", rooms=2))
    with pytest.raises(InsufficientAvailabilityError):
        booking_service.amend_booking(db, booking.id, BookingAmend(changes=BookingUpdate(room_type="Executive Suite")), actor="A")
    amended = booking_service.amend_booking(db, booking.id, BookingAmend(changes=BookingUpdate(room_type="Suite Room")), actor="A")
    assert amended.room_type == "Suite"
    assert amended.amendment_logs[0]["changes"] == [{"field": "room_type", "before": "Deluxe", "after": "Suite"}]


def test_amend_cancelled_booking_fails(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    booking_service.confirm_booking(db, booking.id)
    booking_service.cancel_booking(db, booking.id, BookingCancel(reason="No show"))
    with pytest.raises(InvalidStateError):
        booking_service.amend_booking(db, booking.id, BookingAmend(changes=BookingUpdate(notes="x")), actor="A")


def test_amend_requires_an_actor(db, room_types, make_payload):
    booking = booking_service.create_booking(db, make_payload())
    with pytest.raises(ValidationError):
        booking_service.amend_booking(db, booking.id, BookingAmend(changes=BookingUpdate(notes="x")))


# ==== inventory invariant ====

def test_active_bookings_never_exceed_inventory(db, room_types, make_payload):
    requests = [
        ("2025-12-01", "2025-12-04", 3),
        ("2025-12-02", "2025-12-06", 2),
        ("2025-12-03", "2025-12-05", 2),
        ("2025-12-01", "2025-12-02", 2),
        ("2025-12-04", "2025-12-07", 4),
        ("2025-12-03", "2025-12-04", 1),
    ]
    for check_in, check_out, rooms in requests:
        try:
            booking_service.create_booking(db, make_payload(check_in, check_out, room_type="Executive", rooms=rooms))
        except InsufficientAvailabilityError:
            pass

    per_night = Counter()
    for b in db.query(Booking).filter(Booking.room_type == "Executive").all():
        for night in iter_nights(b.check_in, b.check_out):
            per_night[night] += b.number_of_rooms
    assert per_night
    assert max(per_night.values()) <= 5
