from django.urls import path

from .views import FoodOrderCartView, FoodOrderDetailView, FoodOrderSearchView, FoodOrdersCollectionView

app_name = "food_orders"

urlpatterns = [
    path("food-orders", FoodOrdersCollectionView.as_view(), name="collection"),  # GET list / POST create / PUT update
    path("food-orders/new", FoodOrderCartView.as_view(), name="cart"),
    path("food-orders/<int:order_id>", FoodOrderDetailView.as_view(), name="detail"),
    path("_search/food-orders", FoodOrderSearchView.as_view(), name="search"),
]
