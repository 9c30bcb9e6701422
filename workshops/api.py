from __future__ import annotations

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from accounts.auth import admin_required
from bookings.http import form_error_response, json_api, parse_json_body

from . import services
from .emails import send_workshop_booking_confirmed, send_workshop_booking_received
from .forms import WorkshopBookingForm, WorkshopCreateForm, WorkshopUpdateForm


@require_GET
@json_api
def workshops_api(request):
    """GET /api/workshops/ -> active workshops with their remaining spots."""
    return JsonResponse({"workshops": services.workshop_listing(active_only=True)})


@csrf_exempt
@require_POST
@json_api
def book_workshop_api(request):
    """
    POST /api/workshops/book/
    Payload (JSON): workshopId, name, email, participants, phone?, notes?
    """
    form = WorkshopBookingForm(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)

    booking = services.book_workshop(**form.to_kwargs())
    workshop = services.find_workshop(booking.workshop_id)
    notification = send_workshop_booking_received(booking, workshop)

    return JsonResponse(
        {
            "success": True,
            "booking": booking.to_dict(),
            "message": "Workshop booking received.",
            **notification.as_response_fields(),
        },
        status=201,
    )


@csrf_exempt
@require_http_methods(["GET", "POST"])
@admin_required
@json_api
def admin_workshops_api(request):
    if request.method == "GET":
        return JsonResponse({"workshops": services.workshop_listing(active_only=False)})

    form = WorkshopCreateForm(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)

    workshop = services.create_workshop(**form.to_kwargs())
    return JsonResponse(workshop.to_dict(), status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
@admin_required
@json_api
def admin_workshop_detail_api(request, workshop_id: str):
    if request.method == "GET":
        data = services.get_workshop(workshop_id).to_dict()
        data["remainingSpots"] = services.remaining_capacity(workshop_id)
        return JsonResponse(data)

    if request.method == "DELETE":
        services.delete_workshop(workshop_id)
        return JsonResponse({"success": True})

    form = WorkshopUpdateForm(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)

    workshop = services.update_workshop(workshop_id, form.to_update())
    return JsonResponse(workshop.to_dict())


@require_GET
@admin_required
@json_api
def admin_workshop_bookings_api(request):
    return JsonResponse({"bookings": services.enriched_workshop_bookings()})


@csrf_exempt
@require_POST
@admin_required
@json_api
def admin_workshop_booking_confirm_api(request, booking_id: str):
    result = services.confirm_workshop_booking(booking_id)
    body = {"success": True, "booking": result.booking.to_dict(), "changed": result.changed}

    if result.changed:
        workshop = services.find_workshop(result.booking.workshop_id)
        body.update(send_workshop_booking_confirmed(result.booking, workshop).as_response_fields())

    return JsonResponse(body)


@csrf_exempt
@require_POST
@admin_required
@json_api
def admin_workshop_booking_cancel_api(request, booking_id: str):
    result = services.cancel_workshop_booking(booking_id)
    return JsonResponse({"success": True, "booking": result.booking.to_dict(), "changed": result.changed})
