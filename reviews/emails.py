from django.conf import settings

from bookings.emails import NotificationResult, send_notification

from .models import Review


def send_review_submitted(review: Review) -> NotificationResult:
    return send_notification(
        to_email=settings.BOOKING_EMAIL,
        template="review_studio",
        context={"review": review},
        html=False,
    )
