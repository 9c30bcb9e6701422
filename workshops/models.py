from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from bookings.models import UNSET, BookingStatus, Unset, _drop_none


WORKSHOPS_DOCUMENT = "workshops.json"
WORKSHOP_BOOKINGS_DOCUMENT = "workshop-bookings.json"


@dataclass
class Workshop:
    id: str
    title: str
    description: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    price: str  # display string, e.g. "45 €"
    max_participants: int
    created_at: str
    active: bool = False
    detailed_description: str | None = None
    image_filename: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "title": self.title,
                "description": self.description,
                "detailedDescription": self.detailed_description,
                "date": self.date,
                "time": self.time,
                "price": self.price,
                "maxParticipants": self.max_participants,
                "active": self.active,
                "imageFilename": self.image_filename,
                "createdAt": self.created_at,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Workshop":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            detailed_description=data.get("detailedDescription") or None,
            date=data.get("date", ""),
            time=data.get("time", ""),
            price=str(data.get("price", "")),
            max_participants=int(data["maxParticipants"]),
            active=bool(data.get("active", False)),
            image_filename=data.get("imageFilename") or None,
            created_at=data.get("createdAt", ""),
        )


@dataclass
class WorkshopBooking:
    id: str
    workshop_id: str
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
                "workshopId": self.workshop_id,
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
    def from_dict(cls, data: dict[str, Any]) -> "WorkshopBooking":
        return cls(
            id=data["id"],
            workshop_id=data["workshopId"],
            name=data.get("name", ""),
            email=data.get("email", ""),
            phone=data.get("phone"),
            participants=int(data["participants"]),
            notes=data.get("notes"),
            created_at=data.get("createdAt", ""),
            status=data.get("status", BookingStatus.PENDING),
        )


@dataclass(frozen=True)
class WorkshopUpdate:
    title: Union[str, Unset] = UNSET
    description: Union[str, Unset] = UNSET
    detailed_description: Union[str, None, Unset] = UNSET
    date: Union[str, Unset] = UNSET
    time: Union[str, Unset] = UNSET
    price: Union[str, Unset] = UNSET
    max_participants: Union[int, Unset] = UNSET
    active: Union[bool, Unset] = UNSET
    image_filename: Union[str, None, Unset] = UNSET
