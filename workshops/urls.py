from django.urls import path

from .api import (
    admin_workshop_booking_cancel_api,
    admin_workshop_booking_confirm_api,
    admin_workshop_bookings_api,
    admin_workshop_detail_api,
    admin_workshops_api,
    book_workshop_api,
    workshops_api,
)


app_name = "workshops"

urlpatterns = [
    path("api/workshops/", workshops_api, name="workshops_api"),
    path("api/workshops/book/", book_workshop_api, name="book_workshop_api"),
    path("api/admin/workshops/", admin_workshops_api, name="admin_workshops_api"),
    path(
        "api/admin/workshops/<str:workshop_id>/",
        admin_workshop_detail_api,
        name="admin_workshop_detail_api",
    ),
    path(
        "api/admin/workshop-bookings/",
        admin_workshop_bookings_api,
        name="admin_workshop_bookings_api",
    ),
    path(
        "api/admin/workshop-bookings/<str:booking_id>/confirm/",
        admin_workshop_booking_confirm_api,
        name="admin_workshop_booking_confirm_api",
    ),
    path(
        "api/admin/workshop-bookings/<str:booking_id>/cancel/",
        admin_workshop_booking_cancel_api,
        name="admin_workshop_booking_cancel_api",
    ),
]
