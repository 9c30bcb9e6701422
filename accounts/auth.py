"""
Admin capability check.

The admin panel is protected by one shared credential (ADMIN_USERNAME /
ADMIN_PASSWORD) sent as HTTP Basic auth on every request.

Usage:

    @admin_required
    def admin_slots_api(request):
        ...
"""
from __future__ import annotations

import base64
import binascii
import logging
from functools import wraps

from django.conf import settings
from django.http import JsonResponse
from django.utils.crypto import constant_time_compare


logger = logging.getLogger(__name__)


def parse_basic_auth(header: str) -> tuple[str, str] | None:
    """Return (username, password) from an `Authorization: Basic ...` header, or None."""
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


def is_admin(request) -> bool:
    expected_password = getattr(settings, "ADMIN_PASSWORD", "")
    if not expected_password:
        return False

    credentials = parse_basic_auth(request.headers.get("Authorization", ""))
    if credentials is None:
        return False

    username, password = credentials
    # Evaluate both comparisons so timing does not reveal which one failed.
    user_ok = constant_time_compare(username, settings.ADMIN_USERNAME)
    password_ok = constant_time_compare(password, expected_password)
    return user_ok and password_ok


def unauthorized_response() -> JsonResponse:
    response = JsonResponse({"error": "Unauthorized"}, status=401)
    response["WWW-Authenticate"] = 'Basic realm="admin"'
    return response


def admin_required(view_func):
    """Reject the request with 401 unless it carries the admin credential."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not is_admin(request):
            logger.warning("Rejected admin request to %s", request.path)
            return unauthorized_response()
        return view_func(request, *args, **kwargs)

    return wrapper
