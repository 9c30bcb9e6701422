from django.urls import path

from .api import (
    admin_booking_cancel_api,
    admin_booking_confirm_api,
    admin_booking_update_api,
    admin_bookings_api,
    admin_slot_detail_api,
    admin_slots_api,
    create_booking_api,
    open_slots_api,
)


app_name = "bookings"

urlpatterns = [
    path("api/slots/", open_slots_api, name="open_slots_api"),
    path("api/bookings/", create_booking_api, name="create_booking_api"),
    path("api/admin/slots/", admin_slots_api, name="admin_slots_api"),
    path("api/admin/slots/<str:slot_id>/", admin_slot_detail_api, name="admin_slot_detail_api"),
    path("api/admin/bookings/", admin_bookings_api, name="admin_bookings_api"),
    path(
        "api/admin/bookings/<str:booking_id>/",
        admin_booking_update_api,
        name="admin_booking_update_api",
    ),
    path(
        "api/admin/bookings/<str:booking_id>/confirm/",
        admin_booking_confirm_api,
        name="admin_booking_confirm_api",
    ),
    path(
        "api/admin/bookings/<str:booking_id>/cancel/",
        admin_booking_cancel_api,
        name="admin_booking_cancel_api",
    ),
]
