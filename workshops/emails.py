from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings

from bookings.emails import CalendarEvent, NotificationResult, aware_start, send_notification

from .models import Workshop, WorkshopBooking
from .services import UNKNOWN_WORKSHOP_TITLE


logger = logging.getLogger(__name__)

WORKSHOP_DEFAULT_DURATION = timedelta(hours=3)


def _workshop_context(booking: WorkshopBooking, workshop: Workshop | None) -> dict:
    return {
        "booking": booking,
        "workshop": workshop,
        "workshop_title": workshop.title if workshop else UNKNOWN_WORKSHOP_TITLE,
        "date": workshop.date if workshop else "",
        "time": workshop.time if workshop else "",
        "price": workshop.price if workshop else "",
    }


def workshop_calendar_event(booking: WorkshopBooking, workshop: Workshop) -> CalendarEvent | None:
    try:
        start = aware_start(workshop.date, workshop.time)
    except ValueError:
        logger.warning("Workshop %s has an unparseable date/time, sending without calendar invite", workshop.id)
        return None
    return CalendarEvent(
        summary=f"Workshop: {workshop.title}",
        description=(
            f"{workshop.description}\n"
            f"Teilnehmer: {booking.participants}\n"
            f"Preis: {workshop.price}"
        ),
        start=start,
        end=start + WORKSHOP_DEFAULT_DURATION,
        product="Workshop",
    )


def send_workshop_booking_received(booking: WorkshopBooking, workshop: Workshop | None) -> NotificationResult:
    context = _workshop_context(booking, workshop)
    send_notification(
        to_email=settings.BOOKING_EMAIL,
        template="workshop_studio",
        context=context,
        html=False,
    )
    return send_notification(to_email=booking.email, template="workshop_received", context=context)


def send_workshop_booking_confirmed(booking: WorkshopBooking, workshop: Workshop | None) -> NotificationResult:
    calendar = workshop_calendar_event(booking, workshop) if workshop else None
    return send_notification(
        to_email=booking.email,
        template="workshop_confirmed",
        context=_workshop_context(booking, workshop),
        calendar=calendar,
        calendar_filename="workshop.ics",
    )
