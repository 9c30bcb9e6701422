from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date as date_type
from typing import Any

from django.utils import timezone

from documents import mutation_lock, read_document, write_document

from .errors import (
    BookingNotFound,
    CapacityBelowBooked,
    InsufficientCapacityError,
    InvalidCapacity,
    InvalidInputError,
    InvalidParticipants,
    InvalidStateTransitionError,
    SlotNotFound,
    UseCancelOperation,
)
from .models import (
    BOOKINGS_DOCUMENT,
    SLOTS_DOCUMENT,
    UNSET,
    Booking,
    BookingResult,
    BookingStatus,
    BookingUpdate,
    EventType,
    SlotUpdate,
    TimeSlot,
    new_id,
    utc_now_iso,
)


logger = logging.getLogger(__name__)

# Allowed status changes through update_booking; cancellation has its own path.
_TRANSITIONS = {
    BookingStatus.PENDING.value: {BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value},
    BookingStatus.CONFIRMED.value: {BookingStatus.CONFIRMED.value},
}


def _load_slots() -> list[TimeSlot]:
    return [TimeSlot.from_dict(item) for item in read_document(SLOTS_DOCUMENT, [])]


def _save_slots(slots: list[TimeSlot]) -> None:
    write_document(SLOTS_DOCUMENT, [slot.to_dict() for slot in slots])


def _load_bookings() -> list[Booking]:
    return [Booking.from_dict(item) for item in read_document(BOOKINGS_DOCUMENT, [])]


def _save_bookings(bookings: list[Booking]) -> None:
    write_document(BOOKINGS_DOCUMENT, [booking.to_dict() for booking in bookings])


def _find(items, item_id: str):
    return next((item for item in items if item.id == item_id), None)


def _validate_event_type(event_type: str) -> None:
    if event_type not in EventType.values:
        raise InvalidInputError(f"Unknown event type: {event_type}.")


# ---------------------------------------------------------------------------
# Slot registry
# ---------------------------------------------------------------------------


def list_slots() -> list[TimeSlot]:
    return _load_slots()


def list_open_slots(date_from: date_type | None = None) -> list[TimeSlot]:
    """
    Slots on or after `date_from` (default: today) that still have seats,
    ordered by date and start time.
    """
    cutoff = (date_from or timezone.localdate()).isoformat()
    slots = [slot for slot in _load_slots() if slot.date >= cutoff and slot.available > 0]
    return sorted(slots, key=lambda slot: (slot.date, slot.time))


def find_slot(slot_id: str) -> TimeSlot | None:
    return _find(_load_slots(), slot_id)


def get_slot(slot_id: str) -> TimeSlot:
    slot = find_slot(slot_id)
    if slot is None:
        raise SlotNotFound(f"Slot {slot_id} not found.")
    return slot


def create_slot(
    *,
    date: str,
    time: str,
    max_capacity: int,
    end_time: str | None = None,
    initial_booked: int = 0,
    event_type: str = EventType.NORMAL,
    event_duration: float | None = None,
) -> TimeSlot:
    if max_capacity <= 0:
        raise InvalidCapacity("maxCapacity must be at least 1.")
    if initial_booked < 0 or initial_booked > max_capacity:
        raise InvalidCapacity("initialBooked must be between 0 and maxCapacity.")
    _validate_event_type(event_type)

    slot = TimeSlot(
        id=new_id("slot"),
        date=date,
        time=time,
        end_time=end_time,
        max_capacity=max_capacity,
        available=max_capacity - initial_booked,
        event_type=event_type,
        event_duration=event_duration,
        created_at=utc_now_iso(),
    )

    with mutation_lock:
        slots = _load_slots()
        slots.append(slot)
        _save_slots(slots)

    logger.info("Created slot %s on %s %s (capacity=%s)", slot.id, slot.date, slot.time, slot.max_capacity)
    return slot


def _recompute_capacity(slot: TimeSlot, changes: SlotUpdate) -> tuple[int, int]:
    """Return (max_capacity, available) after applying the capacity part of `changes`."""
    new_max = changes.max_capacity
    override = changes.initial_booked

    if override is not UNSET and override < 0:
        raise InvalidCapacity("initialBooked must not be negative.")

    if new_max is not UNSET and new_max != slot.max_capacity:
        if new_max <= 0:
            raise InvalidCapacity("maxCapacity must be at least 1.")
        booked = override if override is not UNSET else slot.booked
        if new_max < booked:
            raise CapacityBelowBooked(
                f"maxCapacity {new_max} is below the {booked} seat(s) already booked.",
                booked=booked,
            )
        return new_max, new_max - booked

    if override is not UNSET:
        if override > slot.max_capacity:
            raise InvalidCapacity("initialBooked must not exceed maxCapacity.")
        return slot.max_capacity, slot.max_capacity - override

    return slot.max_capacity, slot.available


def update_slot(slot_id: str, changes: SlotUpdate) -> TimeSlot:
    if changes.event_type is not UNSET:
        _validate_event_type(changes.event_type)

    with mutation_lock:
        slots = _load_slots()
        index = next((i for i, slot in enumerate(slots) if slot.id == slot_id), None)
        if index is None:
            raise SlotNotFound(f"Slot {slot_id} not found.")

        current = slots[index]
        max_capacity, available = _recompute_capacity(current, changes)
        updated = replace(current, max_capacity=max_capacity, available=available)
        for attr in ("date", "time", "end_time", "event_type", "event_duration"):
            value = getattr(changes, attr)
            if value is not UNSET:
                setattr(updated, attr, value)

        slots[index] = updated
        _save_slots(slots)

    logger.info("Updated slot %s (capacity=%s, available=%s)", slot_id, updated.max_capacity, updated.available)
    return updated


def delete_slot(slot_id: str) -> None:
    """
    Remove a slot. Bookings that reference it are left as they are.
    """
    with mutation_lock:
        slots = _load_slots()
        remaining = [slot for slot in slots if slot.id != slot_id]
        if len(remaining) == len(slots):
            raise SlotNotFound(f"Slot {slot_id} not found.")
        _save_slots(remaining)

    orphaned = bookings_for_slot(slot_id)
    if orphaned:
        logger.warning("Deleted slot %s with %d active booking(s) still referencing it", slot_id, len(orphaned))
    else:
        logger.info("Deleted slot %s", slot_id)


# ---------------------------------------------------------------------------
# Booking ledger
# ---------------------------------------------------------------------------


def list_bookings() -> list[Booking]:
    return _load_bookings()


def get_booking(booking_id: str) -> Booking:
    booking = _find(_load_bookings(), booking_id)
    if booking is None:
        raise BookingNotFound(f"Booking {booking_id} not found.")
    return booking


def bookings_for_slot(slot_id: str) -> list[Booking]:
    """Non-cancelled bookings that reference the slot."""
    return [b for b in _load_bookings() if b.slot_id == slot_id and b.is_active]


def enriched_bookings() -> list[dict[str, Any]]:
    """Bookings as dicts with the referenced slot's date/time/capacity (None if the slot is gone)."""
    slots = {slot.id: slot for slot in _load_slots()}
    rows = []
    for booking in _load_bookings():
        slot = slots.get(booking.slot_id)
        row = booking.to_dict()
        row.update(
            {
                "slotDate": slot.date if slot else None,
                "slotTime": slot.time if slot else None,
                "slotEndTime": slot.end_time if slot else None,
                "slotMaxCapacity": slot.max_capacity if slot else None,
                "slotAvailable": slot.available if slot else None,
            }
        )
        rows.append(row)
    return rows


def add_booking(
    *,
    slot_id: str,
    name: str,
    email: str,
    participants: int,
    phone: str | None = None,
    notes: str | None = None,
) -> Booking:
    """
    Reserve `participants` seats on a slot.

    The booking starts as pending; the seats are taken from the slot's
    `available` counter immediately.
    """
    if participants <= 0:
        raise InvalidParticipants("participants must be greater than 0.")

    with mutation_lock:
        slots = _load_slots()
        slot = _find(slots, slot_id)
        if slot is None:
            raise SlotNotFound(f"Slot {slot_id} not found.")
        if slot.available < participants:
            raise InsufficientCapacityError(
                f"Only {slot.available} seat(s) left for this slot.",
                available=slot.available,
            )

        booking = Booking(
            id=new_id("booking"),
            slot_id=slot_id,
            name=name,
            email=email,
            phone=phone or None,
            participants=participants,
            notes=notes or None,
            created_at=utc_now_iso(),
            status=BookingStatus.PENDING,
        )
        bookings = _load_bookings()
        bookings.append(booking)
        _save_bookings(bookings)

        slot.available -= participants
        _save_slots(slots)

    logger.info(
        "Booking %s created for slot %s (%d participant(s), %d left)",
        booking.id,
        slot_id,
        participants,
        slot.available,
    )
    return booking


def cancel_booking(booking_id: str) -> BookingResult:
    """
    Cancel a booking and give its seats back to the slot.

    Cancelling an already cancelled booking changes nothing and returns
    changed=False.
    """
    with mutation_lock:
        bookings = _load_bookings()
        booking = _find(bookings, booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found.")
        if booking.status == BookingStatus.CANCELLED:
            logger.info("Booking %s is already cancelled", booking_id)
            return BookingResult(booking, changed=False)

        booking.status = BookingStatus.CANCELLED
        _save_bookings(bookings)

        slots = _load_slots()
        slot = _find(slots, booking.slot_id)
        if slot is None:
            logger.warning("Booking %s cancelled but slot %s no longer exists", booking_id, booking.slot_id)
        else:
            slot.available += booking.participants
            _save_slots(slots)

    logger.info("Booking %s cancelled (%d seat(s) released)", booking_id, booking.participants)
    return BookingResult(booking)


def _check_transition(current: str, target: str) -> None:
    if target not in BookingStatus.values:
        raise InvalidInputError(f"Unknown booking status: {target}.")
    if target == BookingStatus.CANCELLED:
        raise UseCancelOperation("Use the cancel operation to cancel a booking.")
    if str(target) not in _TRANSITIONS.get(str(current), set()):
        raise InvalidStateTransitionError(f"Cannot change a {current} booking to {target}.")


def update_booking(booking_id: str, changes: BookingUpdate) -> Booking:
    """
    Apply a partial update to a booking.

    A participant change moves the difference in and out of the slot's
    `available` counter; the slot is adjusted before the booking is saved.
    """
    if changes.status == BookingStatus.CANCELLED:
        raise UseCancelOperation("Use the cancel operation to cancel a booking.")
    if changes.participants is not UNSET and changes.participants <= 0:
        raise InvalidParticipants("participants must be greater than 0.")

    with mutation_lock:
        bookings = _load_bookings()
        booking = _find(bookings, booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found.")
        if booking.status == BookingStatus.CANCELLED:
            raise InvalidStateTransitionError("Cancelled bookings cannot be changed.")
        if changes.status is not UNSET:
            _check_transition(booking.status, changes.status)

        if changes.participants is not UNSET and changes.participants != booking.participants:
            delta = changes.participants - booking.participants
            slots = _load_slots()
            slot = _find(slots, booking.slot_id)
            if slot is None:
                raise SlotNotFound(f"Slot {booking.slot_id} not found.")
            if slot.available - delta < 0:
                raise InsufficientCapacityError(
                    "Not enough free seats for this change.",
                    available=slot.available,
                )
            slot.available -= delta
            _save_slots(slots)

        for attr in ("name", "email", "phone", "participants", "notes", "status"):
            value = getattr(changes, attr)
            if value is not UNSET:
                setattr(booking, attr, value)
        _save_bookings(bookings)

    logger.info("Booking %s updated", booking_id)
    return booking


def confirm_booking(booking_id: str) -> BookingResult:
    """Mark a booking confirmed. Seats were already taken when it was created."""
    with mutation_lock:
        before = get_booking(booking_id)
        booking = update_booking(booking_id, BookingUpdate(status=BookingStatus.CONFIRMED))
    return BookingResult(booking, changed=before.status != BookingStatus.CONFIRMED)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SlotDrift:
    slot_id: str
    recorded: int
    expected: int


def reconcile_availability(*, apply: bool = False) -> list[SlotDrift]:
    """
    Compare every slot's `available` counter with maxCapacity minus the
    participants of its non-cancelled bookings. With apply=True the counters
    are rewritten (clamped at 0 for overbooked slots).
    """
    with mutation_lock:
        slots = _load_slots()
        held: dict[str, int] = {}
        for booking in _load_bookings():
            if booking.is_active:
                held[booking.slot_id] = held.get(booking.slot_id, 0) + booking.participants

        drifts = []
        for slot in slots:
            expected = slot.max_capacity - held.get(slot.id, 0)
            if expected < 0:
                logger.warning("Slot %s is overbooked by %d seat(s)", slot.id, -expected)
            corrected = max(expected, 0)
            if corrected != slot.available:
                drifts.append(SlotDrift(slot_id=slot.id, recorded=slot.available, expected=corrected))
                slot.available = corrected

        if apply and drifts:
            _save_slots(slots)
            logger.info("Corrected availability of %d slot(s)", len(drifts))

    return drifts
