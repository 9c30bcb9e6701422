"""
Workshop catalogue and workshop bookings.

Unlike time slots, workshops keep no running seat counter: the remaining
capacity is always derived from the stored bookings when it is needed.
"""
from __future__ import annotations

import logging
from typing import Any

from bookings.errors import (
    BookingNotFound,
    CapacityBelowBooked,
    InvalidCapacity,
    InvalidParticipants,
    InvalidStateTransitionError,
    NotEnoughSpots,
    WorkshopInactive,
    WorkshopNotFound,
)
from bookings.models import UNSET, BookingResult, BookingStatus, new_id, utc_now_iso
from documents import mutation_lock, read_document, write_document

from .models import (
    WORKSHOP_BOOKINGS_DOCUMENT,
    WORKSHOPS_DOCUMENT,
    Workshop,
    WorkshopBooking,
    WorkshopUpdate,
)


logger = logging.getLogger(__name__)

UNKNOWN_WORKSHOP_TITLE = "Unbekannt"


def _load_workshops() -> list[Workshop]:
    return [Workshop.from_dict(item) for item in read_document(WORKSHOPS_DOCUMENT, [])]


def _save_workshops(workshops: list[Workshop]) -> None:
    write_document(WORKSHOPS_DOCUMENT, [workshop.to_dict() for workshop in workshops])


def _load_bookings() -> list[WorkshopBooking]:
    return [WorkshopBooking.from_dict(item) for item in read_document(WORKSHOP_BOOKINGS_DOCUMENT, [])]


def _save_bookings(bookings: list[WorkshopBooking]) -> None:
    write_document(WORKSHOP_BOOKINGS_DOCUMENT, [booking.to_dict() for booking in bookings])


def _find(items, item_id: str):
    return next((item for item in items if item.id == item_id), None)


def _booked(workshop_id: str, bookings: list[WorkshopBooking]) -> int:
    return sum(b.participants for b in bookings if b.workshop_id == workshop_id and b.is_active)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


def list_workshops(active_only: bool = False) -> list[Workshop]:
    workshops = _load_workshops()
    if active_only:
        workshops = [w for w in workshops if w.active]
    return sorted(workshops, key=lambda w: (w.date, w.time))


def workshop_listing(active_only: bool = True) -> list[dict[str, Any]]:
    """Workshops as dicts with `bookedParticipants` and `remainingSpots` filled in."""
    bookings = _load_bookings()
    rows = []
    for workshop in list_workshops(active_only=active_only):
        booked = _booked(workshop.id, bookings)
        row = workshop.to_dict()
        row["bookedParticipants"] = booked
        row["remainingSpots"] = max(workshop.max_participants - booked, 0)
        rows.append(row)
    return rows


def find_workshop(workshop_id: str) -> Workshop | None:
    return _find(_load_workshops(), workshop_id)


def get_workshop(workshop_id: str) -> Workshop:
    workshop = find_workshop(workshop_id)
    if workshop is None:
        raise WorkshopNotFound(f"Workshop {workshop_id} not found.")
    return workshop


def create_workshop(
    *,
    title: str,
    description: str,
    date: str,
    time: str,
    price: str,
    max_participants: int,
    detailed_description: str | None = None,
    active: bool = False,
    image_filename: str | None = None,
) -> Workshop:
    if max_participants <= 0:
        raise InvalidCapacity("maxParticipants must be at least 1.")

    workshop = Workshop(
        id=new_id("workshop"),
        title=title,
        description=description,
        detailed_description=detailed_description or None,
        date=date,
        time=time,
        price=price,
        max_participants=max_participants,
        active=active,
        image_filename=image_filename or None,
        created_at=utc_now_iso(),
    )

    with mutation_lock:
        workshops = _load_workshops()
        workshops.append(workshop)
        _save_workshops(workshops)

    logger.info("Created workshop %s (%s on %s)", workshop.id, workshop.title, workshop.date)
    return workshop


def update_workshop(workshop_id: str, changes: WorkshopUpdate) -> Workshop:
    with mutation_lock:
        workshops = _load_workshops()
        workshop = _find(workshops, workshop_id)
        if workshop is None:
            raise WorkshopNotFound(f"Workshop {workshop_id} not found.")

        if changes.max_participants is not UNSET:
            if changes.max_participants <= 0:
                raise InvalidCapacity("maxParticipants must be at least 1.")
            booked = _booked(workshop_id, _load_bookings())
            if changes.max_participants < booked:
                raise CapacityBelowBooked(
                    f"maxParticipants {changes.max_participants} is below the {booked} participant(s) already booked.",
                    booked=booked,
                )

        for attr in (
            "title",
            "description",
            "detailed_description",
            "date",
            "time",
            "price",
            "max_participants",
            "active",
            "image_filename",
        ):
            value = getattr(changes, attr)
            if value is not UNSET:
                setattr(workshop, attr, value)
        _save_workshops(workshops)

    logger.info("Updated workshop %s", workshop_id)
    return workshop


def delete_workshop(workshop_id: str) -> None:
    with mutation_lock:
        workshops = _load_workshops()
        remaining = [w for w in workshops if w.id != workshop_id]
        if len(remaining) == len(workshops):
            raise WorkshopNotFound(f"Workshop {workshop_id} not found.")
        _save_workshops(remaining)

    logger.info("Deleted workshop %s", workshop_id)


# ---------------------------------------------------------------------------
# Workshop bookings
# ---------------------------------------------------------------------------


def remaining_capacity(workshop_id: str) -> int:
    workshop = get_workshop(workshop_id)
    return workshop.max_participants - _booked(workshop_id, _load_bookings())


def list_workshop_bookings() -> list[WorkshopBooking]:
    return _load_bookings()


def get_workshop_booking(booking_id: str) -> WorkshopBooking:
    booking = _find(_load_bookings(), booking_id)
    if booking is None:
        raise BookingNotFound(f"Workshop booking {booking_id} not found.")
    return booking


def book_workshop(
    *,
    workshop_id: str,
    name: str,
    email: str,
    participants: int,
    phone: str | None = None,
    notes: str | None = None,
) -> WorkshopBooking:
    if participants <= 0:
        raise InvalidParticipants("participants must be greater than 0.")

    with mutation_lock:
        workshop = get_workshop(workshop_id)
        if not workshop.active:
            raise WorkshopInactive("This workshop is not open for bookings.")

        bookings = _load_bookings()
        available = workshop.max_participants - _booked(workshop_id, bookings)
        if participants > available:
            raise NotEnoughSpots(
                f"Only {max(available, 0)} spot(s) left for this workshop.",
                available=max(available, 0),
            )

        booking = WorkshopBooking(
            id=new_id("wb"),
            workshop_id=workshop_id,
            name=name.strip(),
            email=email.strip().lower(),
            phone=(phone or "").strip() or None,
            participants=participants,
            notes=(notes or "").strip() or None,
            created_at=utc_now_iso(),
            status=BookingStatus.PENDING,
        )
        bookings.append(booking)
        _save_bookings(bookings)

    logger.info(
        "Workshop booking %s created for %s (%d participant(s), %d left)",
        booking.id,
        workshop_id,
        participants,
        available - participants,
    )
    return booking


def confirm_workshop_booking(booking_id: str) -> BookingResult:
    with mutation_lock:
        bookings = _load_bookings()
        booking = _find(bookings, booking_id)
        if booking is None:
            raise BookingNotFound(f"Workshop booking {booking_id} not found.")
        if booking.status == BookingStatus.CANCELLED:
            raise InvalidStateTransitionError("Cancelled bookings cannot be confirmed.")
        if booking.status == BookingStatus.CONFIRMED:
            return BookingResult(booking, changed=False)

        booking.status = BookingStatus.CONFIRMED
        _save_bookings(bookings)

    logger.info("Workshop booking %s confirmed", booking_id)
    return BookingResult(booking)


def cancel_workshop_booking(booking_id: str) -> BookingResult:
    """Cancelling frees the spots implicitly; an already cancelled booking is left alone."""
    with mutation_lock:
        bookings = _load_bookings()
        booking = _find(bookings, booking_id)
        if booking is None:
            raise BookingNotFound(f"Workshop booking {booking_id} not found.")
        if booking.status == BookingStatus.CANCELLED:
            return BookingResult(booking, changed=False)

        booking.status = BookingStatus.CANCELLED
        _save_bookings(bookings)

    logger.info("Workshop booking %s cancelled", booking_id)
    return BookingResult(booking)


def enriched_workshop_bookings() -> list[dict[str, Any]]:
    workshops = {w.id: w for w in _load_workshops()}
    rows = []
    for booking in _load_bookings():
        workshop = workshops.get(booking.workshop_id)
        row = booking.to_dict()
        row.update(
            {
                "workshopTitle": workshop.title if workshop else UNKNOWN_WORKSHOP_TITLE,
                "workshopDate": workshop.date if workshop else None,
                "workshopTime": workshop.time if workshop else None,
                "workshopPrice": workshop.price if workshop else None,
            }
        )
        rows.append(row)
    return rows
