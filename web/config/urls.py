"""
URL configuration for the food orders API.
"""

from django.urls import include, path

urlpatterns = [
    path("", include("apps.monitoring.urls")),
    path("api/", include("apps.food_orders.urls")),
]
