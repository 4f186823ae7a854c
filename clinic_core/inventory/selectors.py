# clinic_core/inventory/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import F, QuerySet

from clinic_core.common.api.exceptions import NotFoundError
from clinic_core.inventory.models import Product, StockTransaction


def get_product(*, product_id: UUID) -> Product:
    try:
        return Product.objects.get(id=product_id)
    except Product.DoesNotExist:
        raise NotFoundError(f"Product {product_id} not found.")


def products_qs() -> QuerySet[Product]:
    return Product.objects.all().order_by("name")


def low_stock_products() -> QuerySet[Product]:
    return Product.objects.filter(is_active=True, stock_quantity__lte=F("min_stock_level")).order_by("stock_quantity", "name")


def stock_transactions_for(*, product_id: UUID) -> QuerySet[StockTransaction]:
    return StockTransaction.objects.filter(product_id=product_id).order_by("-created_at")
