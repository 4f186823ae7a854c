# clinic_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from clinic_core.billing.api.views import BillItemView, BillViewSet
from clinic_core.expenses.api.views import ExpenseViewSet
from clinic_core.inventory.api.views import ProductViewSet
from clinic_core.patients.api.views import PatientViewSet
from clinic_core.visits.api.views import VisitViewSet

router = DefaultRouter()

router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"visits", VisitViewSet, basename="visits")
router.register(r"inventory/products", ProductViewSet, basename="inventory-products")
router.register(r"billing/bills", BillViewSet, basename="billing-bills")
router.register(r"expenses", ExpenseViewSet, basename="expenses")

urlpatterns = [
    path("auth/login/", TokenObtainPairView.as_view(), name="login"),
    path("auth/refresh/", TokenRefreshView.as_view(), name="refresh"),

    path("billing/items/<uuid:item_id>/", BillItemView.as_view(), name="billing-item-detail"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
