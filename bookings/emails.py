from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type
from datetime import datetime, time, timedelta
from datetime import timezone as dt_timezone

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone

from .models import Booking, TimeSlot, new_id


logger = logging.getLogger(__name__)

SLOT_DEFAULT_DURATION = timedelta(hours=2)


@dataclass(frozen=True)
class NotificationResult:
    sent: bool
    error: str | None = None

    def as_response_fields(self) -> dict:
        return {"customerEmailSent": self.sent, "emailError": self.error}


@dataclass(frozen=True)
class CalendarEvent:
    summary: str
    description: str
    start: datetime
    end: datetime
    product: str = "Booking"

    def to_ics(self) -> str:
        def fmt(value: datetime) -> str:
            return value.astimezone(dt_timezone.utc).strftime("%Y%m%dT%H%M%SZ")

        description = self.description.replace("\n", "\\n")
        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:-//{settings.STUDIO_NAME}//{self.product}//DE",
            "METHOD:REQUEST",
            "BEGIN:VEVENT",
            f"UID:{new_id('event')}@{settings.STUDIO_DOMAIN}",
            f"DTSTAMP:{fmt(timezone.now())}",
            f"DTSTART:{fmt(self.start)}",
            f"DTEND:{fmt(self.end)}",
            f"SUMMARY:{self.summary}",
            f"DESCRIPTION:{description}",
            f"LOCATION:{settings.STUDIO_NAME}, {settings.STUDIO_ADDRESS}",
            "STATUS:CONFIRMED",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
        return "\r\n".join(lines) + "\r\n"


def aware_start(date_str: str, time_str: str) -> datetime:
    naive = datetime.combine(date_type.fromisoformat(date_str), time.fromisoformat(time_str))
    return timezone.make_aware(naive, timezone.get_current_timezone())


def send_notification(
    *,
    to_email: str,
    template: str,
    context: dict,
    html: bool = True,
    calendar: CalendarEvent | None = None,
    calendar_filename: str = "termin.ics",
) -> NotificationResult:
    """
    Render emails/<template>{_subject.txt,.txt[,.html]} and send it.
    Never raises (logs on failure).
    """
    if not to_email:
        return NotificationResult(sent=False, error="No recipient address.")

    context = {
        "studio_name": settings.STUDIO_NAME,
        "studio_address": settings.STUDIO_ADDRESS,
        "booking_email": settings.BOOKING_EMAIL,
        **context,
    }

    try:
        subject = render_to_string(f"emails/{template}_subject.txt", context).strip()
        text_body = render_to_string(f"emails/{template}.txt", context)

        msg = EmailMultiAlternatives(
            subject=subject,
            body=text_body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[to_email],
        )
        if html:
            html_body = render_to_string(f"emails/{template}.html", context)
            if html_body:
                msg.attach_alternative(html_body, "text/html")
        if calendar is not None:
            msg.attach(calendar_filename, calendar.to_ics(), "text/calendar")
        msg.send(fail_silently=False)
    except Exception as exc:
        logger.exception("Failed to send %s email to %s", template, to_email)
        return NotificationResult(sent=False, error=str(exc) or exc.__class__.__name__)

    logger.info("Sent %s email to %s", template, to_email)
    return NotificationResult(sent=True)


def _booking_context(booking: Booking, slot: TimeSlot | None) -> dict:
    return {
        "booking": booking,
        "slot": slot,
        "date": slot.date if slot else "",
        "time_display": slot.time_display if slot else "",
    }


def slot_calendar_event(booking: Booking, slot: TimeSlot) -> CalendarEvent | None:
    """None when the slot's date or times cannot be parsed; the email goes out without an invite."""
    try:
        start = aware_start(slot.date, slot.time)
        end = aware_start(slot.date, slot.end_time) if slot.end_time else start + SLOT_DEFAULT_DURATION
    except ValueError:
        logger.warning("Slot %s has an unparseable date/time, sending without calendar invite", slot.id)
        return None
    return CalendarEvent(
        summary=f"Keramik-Termin: {booking.name}",
        description=(
            f"Buchung für {booking.participants} Person(en)\n"
            f"E-Mail: {booking.email}\n"
            f"Telefon: {booking.phone or 'Nicht angegeben'}\n"
            f"Notizen: {booking.notes or 'Keine'}"
        ),
        start=start,
        end=end,
    )


def send_booking_received(booking: Booking, slot: TimeSlot | None) -> NotificationResult:
    """Tell the studio about a new request and the customer that it arrived."""
    context = _booking_context(booking, slot)
    send_notification(
        to_email=settings.BOOKING_EMAIL,
        template="booking_studio",
        context=context,
        html=False,
    )
    return send_notification(to_email=booking.email, template="booking_received", context=context)


def send_booking_confirmed(booking: Booking, slot: TimeSlot | None) -> NotificationResult:
    calendar = slot_calendar_event(booking, slot) if slot else None
    return send_notification(
        to_email=booking.email,
        template="booking_confirmed",
        context=_booking_context(booking, slot),
        calendar=calendar,
    )
