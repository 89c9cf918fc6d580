from django.apps import AppConfig


class FoodOrdersConfig(AppConfig):
    name = "apps.food_orders"
    label = "food_orders"
    default_auto_field = "django.db.models.BigAutoField"
