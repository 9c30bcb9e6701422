import base64

import pytest
from django.core.mail import EmailMultiAlternatives

from bookings import services as booking_services
from bookings.models import BookingStatus
from reviews import services as review_services
from workshops import services as workshop_services


@pytest.fixture
def slot():
    return booking_services.create_slot(date="2099-05-01", time="10:00", end_time="12:00", max_capacity=10)


@pytest.fixture
def workshop():
    return workshop_services.create_workshop(
        title="Raku-Brand",
        description="Brennen im Garten",
        date="2099-08-15",
        time="16:00",
        price="80 €",
        max_participants=4,
        active=True,
    )


def booking_payload(slot, **overrides):
    payload = {
        "slotId": slot.id,
        "name": "Anna Muster",
        "email": "Anna@Example.com",
        "participants": 4,
    }
    payload.update(overrides)
    return payload


def test_health(client):
    assert client.get("/health/").json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# Public booking API
# ---------------------------------------------------------------------------


def test_open_slots(client, slot):
    response = client.get("/api/slots/")

    assert response.status_code == 200
    assert [s["id"] for s in response.json()["slots"]] == [slot.id]


def test_open_slots_rejects_bad_date(client):
    assert client.get("/api/slots/?from=01.05.2099").status_code == 400


def test_create_booking_notifies_studio_and_customer(post_json, slot, mailoutbox):
    response = post_json("/api/bookings/", booking_payload(slot))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["customerEmailSent"] is True
    assert body["emailError"] is None
    assert body["booking"]["email"] == "anna@example.com"
    assert booking_services.get_slot(slot.id).available == 6

    assert [m.to for m in mailoutbox] == [["studio@example.com"], ["anna@example.com"]]
    assert "Anna Muster" in mailoutbox[0].body


def test_create_booking_without_enough_seats_is_conflict(post_json, slot):
    response = post_json("/api/bookings/", booking_payload(slot, participants=11))

    assert response.status_code == 409
    assert response.json()["available"] == 10


def test_create_booking_unknown_slot_is_not_found(post_json, slot):
    response = post_json("/api/bookings/", booking_payload(slot, slotId="slot_missing"))
    assert response.status_code == 404


def test_create_booking_validation_errors(post_json, slot):
    response = post_json("/api/bookings/", booking_payload(slot, email="not-an-email"))

    assert response.status_code == 400
    assert "email" in response.json()["details"]


def test_create_booking_with_zero_participants_is_bad_request(post_json, slot):
    response = post_json("/api/bookings/", booking_payload(slot, participants=0))
    assert response.status_code == 400


def test_invalid_json_is_bad_request(client):
    response = client.post("/api/bookings/", data="{", content_type="application/json")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON payload."}


def test_booking_survives_email_failure(post_json, slot, monkeypatch):
    def broken_send(self, fail_silently=False):
        raise ConnectionRefusedError("SMTP down")

    monkeypatch.setattr(EmailMultiAlternatives, "send", broken_send)

    response = post_json("/api/bookings/", booking_payload(slot))

    assert response.status_code == 201
    assert response.json()["customerEmailSent"] is False
    assert response.json()["emailError"] == "SMTP down"
    assert len(booking_services.list_bookings()) == 1


def test_storage_failure_is_service_unavailable(client, data_dir):
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "time-slots.json").write_text("[{broken", encoding="utf-8")

    response = client.get("/api/slots/")

    assert response.status_code == 503
    assert response.json() == {"error": "Storage is unavailable."}


# ---------------------------------------------------------------------------
# Admin authentication
# ---------------------------------------------------------------------------


def test_admin_requires_credentials(client, admin_headers):
    response = client.get("/api/admin/slots/")

    assert response.status_code == 401
    assert response["WWW-Authenticate"].startswith("Basic")


def test_admin_rejects_wrong_password(client, admin_headers):
    token = base64.b64encode(b"admin:wrong").decode("ascii")
    response = client.get("/api/admin/slots/", HTTP_AUTHORIZATION=f"Basic {token}")
    assert response.status_code == 401


def test_admin_locked_when_no_password_configured(client, settings):
    settings.ADMIN_PASSWORD = ""
    token = base64.b64encode(b"admin:").decode("ascii")
    response = client.get("/api/admin/slots/", HTTP_AUTHORIZATION=f"Basic {token}")
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Admin slots and bookings
# ---------------------------------------------------------------------------


def test_admin_create_update_delete_slot(client, post_json, admin_headers):
    response = post_json(
        "/api/admin/slots/",
        {"date": "2099-05-03", "startTime": "14:00", "endTime": "16:30", "maxCapacity": 6, "initialBooked": 1},
        **admin_headers,
    )
    assert response.status_code == 201
    created = response.json()
    assert created["available"] == 5
    assert created["endTime"] == "16:30"

    response = post_json(
        f"/api/admin/slots/{created['id']}/",
        {"maxCapacity": 8, "endTime": None},
        method="put",
        **admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["available"] == 7
    assert "endTime" not in response.json()

    response = client.delete(f"/api/admin/slots/{created['id']}/", **admin_headers)
    assert response.status_code == 200
    assert client.get(f"/api/admin/slots/{created['id']}/", **admin_headers).status_code == 404


def test_admin_create_slot_requires_start_time(post_json, admin_headers):
    response = post_json("/api/admin/slots/", {"date": "2099-05-03", "maxCapacity": 6}, **admin_headers)
    assert response.status_code == 400


def test_admin_update_slot_needs_some_field(post_json, admin_headers, slot):
    response = post_json(f"/api/admin/slots/{slot.id}/", {}, method="put", **admin_headers)
    assert response.status_code == 400


def test_admin_slot_capacity_below_booked(post_json, admin_headers, slot):
    booking_services.add_booking(slot_id=slot.id, name="A", email="a@example.com", participants=4)

    response = post_json(f"/api/admin/slots/{slot.id}/", {"maxCapacity": 2}, method="put", **admin_headers)

    assert response.status_code == 400
    assert response.json()["booked"] == 4


def test_admin_confirm_sends_calendar_invite_once(client, admin_headers, slot, mailoutbox):
    booking = booking_services.add_booking(slot_id=slot.id, name="Anna", email="anna@example.com", participants=2)
    url = f"/api/admin/bookings/{booking.id}/confirm/"

    response = client.post(url, **admin_headers)

    assert response.status_code == 200
    assert response.json()["changed"] is True
    assert response.json()["customerEmailSent"] is True
    assert len(mailoutbox) == 1
    filename, content, mimetype = mailoutbox[0].attachments[0]
    assert filename == "termin.ics"
    assert "BEGIN:VEVENT" in content
    assert mimetype.startswith("text/calendar")

    response = client.post(url, **admin_headers)
    assert response.json()["changed"] is False
    assert len(mailoutbox) == 1


def test_admin_update_booking(post_json, admin_headers, slot):
    booking = booking_services.add_booking(slot_id=slot.id, name="Anna", email="anna@example.com", participants=3)

    response = post_json(
        f"/api/admin/bookings/{booking.id}/",
        {"participants": 2, "notes": "Kinder dabei"},
        method="put",
        **admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["booking"]["participants"] == 2
    assert booking_services.get_slot(slot.id).available == 8


def test_admin_update_cannot_cancel(post_json, admin_headers, slot):
    booking = booking_services.add_booking(slot_id=slot.id, name="Anna", email="anna@example.com", participants=3)

    response = post_json(f"/api/admin/bookings/{booking.id}/", {"status": "cancelled"}, method="put", **admin_headers)

    assert response.status_code == 400
    assert booking_services.get_booking(booking.id).status == BookingStatus.PENDING


def test_admin_update_participants_conflict(post_json, admin_headers, slot):
    booking = booking_services.add_booking(slot_id=slot.id, name="Anna", email="anna@example.com", participants=3)

    response = post_json(f"/api/admin/bookings/{booking.id}/", {"participants": 11}, method="put", **admin_headers)

    assert response.status_code == 409


def test_admin_cancel_and_list_bookings(client, admin_headers, slot):
    booking = booking_services.add_booking(slot_id=slot.id, name="Anna", email="anna@example.com", participants=3)

    response = client.post(f"/api/admin/bookings/{booking.id}/cancel/", **admin_headers)
    assert response.json()["changed"] is True

    rows = client.get("/api/admin/bookings/", **admin_headers).json()["bookings"]
    assert rows[0]["status"] == "cancelled"
    assert rows[0]["slotAvailable"] == 10


def test_admin_cancel_unknown_booking(client, admin_headers):
    response = client.post("/api/admin/bookings/booking_missing/cancel/", **admin_headers)
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Workshops
# ---------------------------------------------------------------------------


def test_public_workshop_listing(client, workshop):
    workshop_services.create_workshop(
        title="Entwurf",
        description="noch nicht online",
        date="2099-09-01",
        time="10:00",
        price="40 €",
        max_participants=4,
    )

    rows = client.get("/api/workshops/").json()["workshops"]

    assert [row["id"] for row in rows] == [workshop.id]
    assert rows[0]["remainingSpots"] == 4


def test_book_workshop(post_json, workshop, mailoutbox):
    payload = {"workshopId": workshop.id, "name": "Clara", "email": "clara@example.com", "participants": 3}

    response = post_json("/api/workshops/book/", payload)

    assert response.status_code == 201
    assert response.json()["booking"]["workshopId"] == workshop.id
    assert len(mailoutbox) == 2
    assert "Raku-Brand" in mailoutbox[1].subject

    response = post_json("/api/workshops/book/", payload)
    assert response.status_code == 409
    assert response.json()["availableSpots"] == 1


def test_admin_workshop_crud(client, post_json, admin_headers):
    response = post_json(
        "/api/admin/workshops/",
        {
            "title": "Glasieren",
            "description": "Farben und Techniken",
            "date": "2099-10-10",
            "time": "17:30",
            "price": "55 €",
            "maxParticipants": 6,
            "active": True,
        },
        **admin_headers,
    )
    assert response.status_code == 201
    workshop_id = response.json()["id"]

    response = post_json(f"/api/admin/workshops/{workshop_id}/", {"active": False}, method="put", **admin_headers)
    assert response.json()["active"] is False

    assert client.get(f"/api/admin/workshops/{workshop_id}/", **admin_headers).json()["remainingSpots"] == 6
    assert client.delete(f"/api/admin/workshops/{workshop_id}/", **admin_headers).status_code == 200
    assert client.get("/api/admin/workshops/", **admin_headers).json() == {"workshops": []}


def test_admin_confirm_workshop_booking_attaches_workshop_invite(client, admin_headers, workshop, mailoutbox):
    booking = workshop_services.book_workshop(
        workshop_id=workshop.id, name="Clara", email="clara@example.com", participants=1
    )

    response = client.post(f"/api/admin/workshop-bookings/{booking.id}/confirm/", **admin_headers)

    assert response.status_code == 200
    assert mailoutbox[0].attachments[0][0] == "workshop.ics"

    response = client.post(f"/api/admin/workshop-bookings/{booking.id}/cancel/", **admin_headers)
    assert response.json()["booking"]["status"] == "cancelled"

    rows = client.get("/api/admin/workshop-bookings/", **admin_headers).json()["bookings"]
    assert rows[0]["workshopTitle"] == "Raku-Brand"


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


def test_review_moderation(client, post_json, admin_headers, mailoutbox):
    response = post_json("/api/reviews/", {"name": "Eva", "rating": 5, "comment": "Toll!"})
    assert response.status_code == 201
    review_id = response.json()["review"]["id"]
    assert mailoutbox[0].to == ["studio@example.com"]

    assert client.get("/api/reviews/").json() == {"reviews": []}

    response = post_json(f"/api/admin/reviews/{review_id}/", {"approved": True}, method="patch", **admin_headers)
    assert response.json()["review"]["approved"] is True
    assert [r["id"] for r in client.get("/api/reviews/").json()["reviews"]] == [review_id]

    assert client.delete(f"/api/admin/reviews/{review_id}/", **admin_headers).status_code == 200
    assert client.get("/api/admin/reviews/", **admin_headers).json() == {"reviews": []}
    assert review_services.list_reviews(approved_only=False) == []


def test_review_rating_out_of_range(post_json):
    response = post_json("/api/reviews/", {"name": "Eva", "rating": 7, "comment": "Zu gut"})
    assert response.status_code == 400


def test_confirm_workshop_with_free_text_time_still_succeeds(client, admin_headers, mailoutbox):
    workshop = workshop_services.create_workshop(
        title="Sommerfest",
        description="Töpfern im Garten",
        date="2099-07-01",
        time="14 Uhr",
        price="30 €",
        max_participants=10,
        active=True,
    )
    booking = workshop_services.book_workshop(
        workshop_id=workshop.id, name="Clara", email="clara@example.com", participants=2
    )

    response = client.post(f"/api/admin/workshop-bookings/{booking.id}/confirm/", **admin_headers)

    assert response.status_code == 200
    assert response.json()["customerEmailSent"] is True
    assert response.json()["booking"]["status"] == "confirmed"
    assert mailoutbox[0].attachments == []


def test_confirm_booking_with_unparseable_slot_time_still_succeeds(client, admin_headers, mailoutbox):
    slot = booking_services.create_slot(date="2099-05-01", time="vormittags", max_capacity=4)
    booking = booking_services.add_booking(slot_id=slot.id, name="Anna", email="anna@example.com", participants=1)

    response = client.post(f"/api/admin/bookings/{booking.id}/confirm/", **admin_headers)

    assert response.status_code == 200
    assert response.json()["customerEmailSent"] is True
    assert mailoutbox[0].attachments == []
