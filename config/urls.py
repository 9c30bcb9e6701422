from django.http import JsonResponse
from django.urls import include, path


def health(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path("health/", health, name="health"),
    path("", include("bookings.urls")),
    path("", include("workshops.urls")),
    path("", include("reviews.urls")),
]
