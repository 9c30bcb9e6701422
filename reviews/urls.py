from django.urls import path

from .api import admin_review_detail_api, admin_reviews_api, reviews_api


app_name = "reviews"

urlpatterns = [
    path("api/reviews/", reviews_api, name="reviews_api"),
    path("api/admin/reviews/", admin_reviews_api, name="admin_reviews_api"),
    path("api/admin/reviews/<str:review_id>/", admin_review_detail_api, name="admin_review_detail_api"),
]
