from __future__ import annotations

from datetime import date as date_type

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from accounts.auth import admin_required

from . import services
from .emails import send_booking_confirmed, send_booking_received
from .forms import BookingCreateForm, BookingUpdateForm, SlotCreateForm, SlotUpdateForm
from .http import form_error_response, json_api, parse_json_body


@require_GET
@json_api
def open_slots_api(request):
    """
    GET /api/slots/[?from=YYYY-MM-DD]

    Upcoming slots that still have free seats, for the booking calendar.
    """
    date_str = request.GET.get("from", "").strip()
    date_from = None
    if date_str:
        try:
            date_from = date_type.fromisoformat(date_str)
        except ValueError:
            return JsonResponse({"error": "Invalid date. Expected YYYY-MM-DD."}, status=400)

    slots = services.list_open_slots(date_from)
    return JsonResponse({"slots": [slot.to_dict() for slot in slots]})


@csrf_exempt
@require_POST
@json_api
def create_booking_api(request):
    """
    POST /api/bookings/
    Payload (JSON): slotId, name, email, participants, phone?, notes?
    """
    form = BookingCreateForm(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)

    booking = services.add_booking(**form.to_kwargs())
    slot = services.find_slot(booking.slot_id)
    notification = send_booking_received(booking, slot)

    return JsonResponse(
        {
            "success": True,
            "booking": booking.to_dict(),
            "message": "Booking request received.",
            **notification.as_response_fields(),
        },
        status=201,
    )


@csrf_exempt
@require_http_methods(["GET", "POST"])
@admin_required
@json_api
def admin_slots_api(request):
    """
    GET  /api/admin/slots/  -> all slots
    POST /api/admin/slots/  -> create (date, time|startTime, endTime?, maxCapacity, initialBooked?, eventType?, eventDuration?)
    """
    if request.method == "GET":
        return JsonResponse({"slots": [slot.to_dict() for slot in services.list_slots()]})

    form = SlotCreateForm(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)

    slot = services.create_slot(**form.to_kwargs())
    return JsonResponse(slot.to_dict(), status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
@admin_required
@json_api
def admin_slot_detail_api(request, slot_id: str):
    if request.method == "GET":
        slot = services.get_slot(slot_id)
        data = slot.to_dict()
        data["bookings"] = [b.to_dict() for b in services.bookings_for_slot(slot_id)]
        return JsonResponse(data)

    if request.method == "DELETE":
        services.delete_slot(slot_id)
        return JsonResponse({"success": True})

    form = SlotUpdateForm(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)

    slot = services.update_slot(slot_id, form.to_update())
    return JsonResponse(slot.to_dict())


@require_GET
@admin_required
@json_api
def admin_bookings_api(request):
    """GET /api/admin/bookings/ -> all bookings with their slot's date/time/capacity."""
    return JsonResponse({"bookings": services.enriched_bookings()})


@csrf_exempt
@require_http_methods(["PUT"])
@admin_required
@json_api
def admin_booking_update_api(request, booking_id: str):
    """
    PUT /api/admin/bookings/<id>/
    Payload (JSON): any of name, email, phone, participants, notes, status (pending|confirmed)
    """
    form = BookingUpdateForm(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)

    booking = services.update_booking(booking_id, form.to_update())
    return JsonResponse({"success": True, "booking": booking.to_dict()})


@csrf_exempt
@require_POST
@admin_required
@json_api
def admin_booking_confirm_api(request, booking_id: str):
    """
    POST /api/admin/bookings/<id>/confirm/

    The customer email is a side effect: its outcome is reported, never fatal.
    """
    result = services.confirm_booking(booking_id)
    body = {"success": True, "booking": result.booking.to_dict(), "changed": result.changed}

    if result.changed:
        slot = services.find_slot(result.booking.slot_id)
        body.update(send_booking_confirmed(result.booking, slot).as_response_fields())

    return JsonResponse(body)


@csrf_exempt
@require_POST
@admin_required
@json_api
def admin_booking_cancel_api(request, booking_id: str):
    """POST /api/admin/bookings/<id>/cancel/"""
    result = services.cancel_booking(booking_id)
    return JsonResponse({"success": True, "booking": result.booking.to_dict(), "changed": result.changed})
