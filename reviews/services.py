from __future__ import annotations

import logging

from bookings.errors import InvalidInputError, ReviewNotFound
from bookings.models import new_id, utc_now_iso
from documents import mutation_lock, read_document, write_document

from .models import MAX_RATING, MIN_RATING, REVIEWS_DOCUMENT, Review


logger = logging.getLogger(__name__)


def _load_reviews() -> list[Review]:
    return [Review.from_dict(item) for item in read_document(REVIEWS_DOCUMENT, [])]


def _save_reviews(reviews: list[Review]) -> None:
    write_document(REVIEWS_DOCUMENT, [review.to_dict() for review in reviews])


def list_reviews(approved_only: bool = True) -> list[Review]:
    """Newest first. The public site only ever sees approved reviews."""
    reviews = _load_reviews()
    if approved_only:
        reviews = [r for r in reviews if r.approved]
    return sorted(reviews, key=lambda r: r.date, reverse=True)


def submit_review(*, name: str, rating: int, comment: str) -> Review:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidInputError(f"rating must be between {MIN_RATING} and {MAX_RATING}.")
    if not name.strip() or not comment.strip():
        raise InvalidInputError("name and comment are required.")

    review = Review(
        id=new_id("review"),
        name=name.strip(),
        rating=rating,
        comment=comment.strip(),
        date=utc_now_iso(),
        approved=False,
    )

    with mutation_lock:
        reviews = _load_reviews()
        reviews.append(review)
        _save_reviews(reviews)

    logger.info("Review %s submitted (%d/5), awaiting approval", review.id, review.rating)
    return review


def set_review_approval(review_id: str, approved: bool) -> Review:
    with mutation_lock:
        reviews = _load_reviews()
        review = next((r for r in reviews if r.id == review_id), None)
        if review is None:
            raise ReviewNotFound(f"Review {review_id} not found.")
        review.approved = approved
        _save_reviews(reviews)

    logger.info("Review %s %s", review_id, "approved" if approved else "hidden")
    return review


def delete_review(review_id: str) -> None:
    with mutation_lock:
        reviews = _load_reviews()
        remaining = [r for r in reviews if r.id != review_id]
        if len(remaining) == len(reviews):
            raise ReviewNotFound(f"Review {review_id} not found.")
        _save_reviews(remaining)

    logger.info("Deleted review %s", review_id)
