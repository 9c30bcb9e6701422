from __future__ import annotations

from dataclasses import dataclass
from typing import Any


REVIEWS_DOCUMENT = "reviews.json"

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class Review:
    id: str
    name: str
    rating: int
    comment: str
    date: str  # ISO timestamp of submission
    approved: bool = False

    @property
    def stars(self) -> str:
        return "★" * self.rating

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "rating": self.rating,
            "comment": self.comment,
            "date": self.date,
            "approved": self.approved,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Review":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            rating=int(data.get("rating", 0)),
            comment=data.get("comment", ""),
            date=data.get("date", ""),
            approved=bool(data.get("approved", False)),
        )
