from __future__ import annotations

import enum
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union

from django.db import models
from django.utils.crypto import get_random_string


SLOTS_DOCUMENT = "time-slots.json"
BOOKINGS_DOCUMENT = "bookings.json"


class Unset(enum.Enum):
    """Marker for "leave this field alone" in partial updates (distinct from None = clear)."""

    UNSET = "UNSET"

    def __repr__(self) -> str:  # pragma: no cover
        return "UNSET"


UNSET = Unset.UNSET


class BookingStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"


class EventType(models.TextChoices):
    NORMAL = "normal", "Normal"
    KINDERGEBURTSTAG = "kindergeburtstag", "Kindergeburtstag"
    STAMMTISCH = "stammtisch", "Stammtisch"


def new_id(prefix: str) -> str:
    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    suffix = get_random_string(9, allowed_chars=string.ascii_lowercase + string.digits)
    return f"{prefix}_{millis}_{suffix}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class TimeSlot:
    id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM start
    max_capacity: int
    available: int
    created_at: str
    end_time: str | None = None
    event_type: str = EventType.NORMAL
    event_duration: float | None = None

    @property
    def booked(self) -> int:
        """Seats held by non-cancelled bookings, according to the running counter."""
        return self.max_capacity - self.available

    @property
    def time_display(self) -> str:
        return f"{self.time} - {self.end_time}" if self.end_time else self.time

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "date": self.date,
                "time": self.time,
                "endTime": self.end_time,
                "maxCapacity": self.max_capacity,
                "available": self.available,
                "eventType": str(self.event_type),
                "eventDuration": self.event_duration,
                "createdAt": self.created_at,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeSlot":
        max_capacity = int(data["maxCapacity"])
        return cls(
            id=data["id"],
            date=data["date"],
            time=data["time"],
            end_time=data.get("endTime") or None,
            max_capacity=max_capacity,
            available=int(data.get("available", max_capacity)),
            event_type=data.get("eventType") or EventType.NORMAL,
            event_duration=data.get("eventDuration"),
            created_at=data.get("createdAt", ""),
        )


@dataclass
class Booking:
    id: str
    slot_id: str
    name: str
    email: str
    participants: int
    created_at: str
    status: str = BookingStatus.PENDING
    phone: str | None = None
    notes: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "slotId": self.slot_id,
                "name": self.name,
                "email": self.email,
                "phone": self.phone,
                "participants": self.participants,
                "notes": self.notes,
                "createdAt": self.created_at,
                "status": str(self.status),
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Booking":
        return cls(
            id=data["id"],
            slot_id=data["slotId"],
            name=data.get("name", ""),
            email=data.get("email", ""),
            phone=data.get("phone"),
            participants=int(data["participants"]),
            notes=data.get("notes"),
            created_at=data.get("createdAt", ""),
            status=data.get("status", BookingStatus.PENDING),
        )


@dataclass(frozen=True)
class SlotUpdate:
    date: Union[str, Unset] = UNSET
    time: Union[str, Unset] = UNSET
    end_time: Union[str, None, Unset] = UNSET
    max_capacity: Union[int, Unset] = UNSET
    initial_booked: Union[int, Unset] = UNSET
    event_type: Union[str, Unset] = UNSET
    event_duration: Union[float, None, Unset] = UNSET


@dataclass(frozen=True)
class BookingUpdate:
    name: Union[str, Unset] = UNSET
    email: Union[str, Unset] = UNSET
    phone: Union[str, None, Unset] = UNSET
    participants: Union[int, Unset] = UNSET
    notes: Union[str, None, Unset] = UNSET
    status: Union[str, Unset] = UNSET


@dataclass
class BookingResult:
    """A booking together with whether the call actually changed it."""

    booking: Any
    changed: bool = True
