"""
JSON request/response helpers shared by the API views.

Domain errors are mapped to HTTP status codes in one place so views stay thin.
"""
from __future__ import annotations

import json
import logging
from functools import wraps

from django.http import JsonResponse

from documents import StorageUnavailable

from .errors import (
    BookingError,
    CapacityBelowBooked,
    InsufficientCapacityError,
    InvalidInputError,
    InvalidStateTransitionError,
    NotEnoughSpots,
    NotFoundError,
)


logger = logging.getLogger(__name__)

# (exception type, status code). First match wins.
ERROR_STATUS: list[tuple[type[Exception], int]] = [
    (NotFoundError, 404),
    (InsufficientCapacityError, 409),
    (InvalidInputError, 400),
    (InvalidStateTransitionError, 400),
    (StorageUnavailable, 503),
]


class InvalidPayload(Exception):
    pass


def parse_json_body(request) -> dict:
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidPayload("Invalid JSON payload.") from exc
    if not isinstance(payload, dict):
        raise InvalidPayload("Expected a JSON object.")
    return payload


def error_response(exc: Exception) -> JsonResponse:
    for exc_type, status in ERROR_STATUS:
        if isinstance(exc, exc_type):
            break
    else:
        raise exc

    body = {"error": str(exc)}
    if isinstance(exc, StorageUnavailable):
        body["error"] = "Storage is unavailable."
    elif isinstance(exc, NotEnoughSpots):
        body["availableSpots"] = exc.available
    elif isinstance(exc, InsufficientCapacityError):
        body["available"] = exc.available
    elif isinstance(exc, CapacityBelowBooked):
        body["booked"] = exc.booked
    return JsonResponse(body, status=status)


def form_error_response(form) -> JsonResponse:
    details = {field: list(errors) for field, errors in form.errors.items()}
    return JsonResponse({"error": "Validation error.", "details": details}, status=400)


def json_api(view_func):
    """Turn bad JSON payloads and domain errors into JSON error responses."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except InvalidPayload as exc:
            return JsonResponse({"error": str(exc)}, status=400)
        except StorageUnavailable as exc:
            logger.exception("Storage backend failed while handling %s %s", request.method, request.path)
            return error_response(exc)
        except BookingError as exc:
            return error_response(exc)

    return wrapper
