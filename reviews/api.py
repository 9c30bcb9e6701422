from __future__ import annotations

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from accounts.auth import admin_required
from bookings.http import form_error_response, json_api, parse_json_body

from . import services
from .emails import send_review_submitted
from .forms import ReviewApprovalForm, ReviewForm


@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_api
def reviews_api(request):
    """
    GET  /api/reviews/ -> approved reviews
    POST /api/reviews/ -> submit (name, rating 1-5, comment); hidden until approved
    """
    if request.method == "GET":
        return JsonResponse({"reviews": [r.to_dict() for r in services.list_reviews(approved_only=True)]})

    form = ReviewForm(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)

    review = services.submit_review(**form.cleaned_data)
    send_review_submitted(review)
    return JsonResponse({"success": True, "review": review.to_dict()}, status=201)


@require_GET
@admin_required
@json_api
def admin_reviews_api(request):
    return JsonResponse({"reviews": [r.to_dict() for r in services.list_reviews(approved_only=False)]})


@csrf_exempt
@require_http_methods(["PATCH", "DELETE"])
@admin_required
@json_api
def admin_review_detail_api(request, review_id: str):
    if request.method == "DELETE":
        services.delete_review(review_id)
        return JsonResponse({"success": True})

    form = ReviewApprovalForm(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)

    review = services.set_review_approval(review_id, form.cleaned_data["approved"])
    return JsonResponse({"success": True, "review": review.to_dict()})
