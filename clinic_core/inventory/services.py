# clinic_core/inventory/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import transaction
from django.db.models import F
from django.db.models.functions import Greatest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.common.api.exceptions import InsufficientStockError, NotFoundError
from clinic_core.inventory.models import Product, StockTransaction, StockTransactionType

logger = logging.getLogger(__name__)


class ProductService:
    EDITABLE_FIELDS = {"name", "description", "category", "unit_price_cents", "min_stock_level", "is_active"}

    @staticmethod
    @transaction.atomic
    def create_product(
        *,
        name: str,
        unit_price_cents: int = 0,
        stock_quantity: int = 0,
        min_stock_level: int = 0,
        description: str = "",
        category: str = "",
        actor_user_id: int | None = None,
    ) -> Product:
        if unit_price_cents < 0:
            raise ValidationError({"unit_price_cents": "Unit price must be >= 0."})
        if stock_quantity < 0:
            raise ValidationError({"stock_quantity": "Stock must be >= 0."})

        product = Product.objects.create(
            name=name,
            description=description or "",
            category=category or "",
            unit_price_cents=unit_price_cents,
            stock_quantity=stock_quantity,
            min_stock_level=min_stock_level,
        )
        if stock_quantity:
            StockTransaction.objects.create(
                product=product,
                transaction_type=StockTransactionType.IN,
                quantity=stock_quantity,
                reason="Opening stock",
                created_by_id=actor_user_id,
            )
        return product

    @staticmethod
    def update_product(*, product: Product, data: dict) -> Product:
        """
        Catalog edits only. Stock moves go through InventoryAdjuster.
        """
        updates = {k: v for k, v in (data or {}).items() if k in ProductService.EDITABLE_FIELDS}
        if updates.get("unit_price_cents", 0) < 0:
            raise ValidationError({"unit_price_cents": "Unit price must be >= 0."})

        for k, v in updates.items():
            setattr(product, k, v)
        product.save(update_fields=[*updates.keys(), "updated_at"])
        return product


class InventoryAdjuster:
    """
    Keeps Product.stock_quantity consistent with billed quantities.

    Every write is a single UPDATE with an F() expression so two concurrent
    bills cannot both pass a stale stock check.
    """

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if quantity is None or int(quantity) <= 0:
            raise ValidationError({"quantity": "Quantity must be > 0."})

    @staticmethod
    @transaction.atomic
    def reserve_stock(
        *,
        product_id: UUID,
        quantity: int,
        reference: str = "",
        actor_user_id: int | None = None,
    ) -> None:
        """
        Decrement stock by quantity if and only if enough is on hand.

        Raises InsufficientStockError (stock untouched) or NotFoundError.
        """
        InventoryAdjuster._require_positive(quantity)

        updated = Product.objects.filter(id=product_id, stock_quantity__gte=quantity).update(
            stock_quantity=F("stock_quantity") - quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            available = Product.objects.filter(id=product_id).values_list("stock_quantity", flat=True).first()
            if available is None:
                raise NotFoundError(f"Product {product_id} not found.")
            logger.warning(
                "Insufficient stock for product %s: requested %s, available %s",
                product_id,
                quantity,
                available,
            )
            raise InsufficientStockError(product_id=product_id, requested=quantity, available=available)

        StockTransaction.objects.create(
            product_id=product_id,
            transaction_type=StockTransactionType.OUT,
            quantity=quantity,
            reason="Billed",
            reference_number=reference or "",
            created_by_id=actor_user_id,
        )

    @staticmethod
    @transaction.atomic
    def release_stock(
        *,
        product_id: UUID,
        quantity: int,
        reference: str = "",
        actor_user_id: int | None = None,
    ) -> None:
        """
        Return quantity to stock. No ceiling check.
        """
        InventoryAdjuster._require_positive(quantity)

        updated = Product.objects.filter(id=product_id).update(
            stock_quantity=F("stock_quantity") + quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            raise NotFoundError(f"Product {product_id} not found.")

        StockTransaction.objects.create(
            product_id=product_id,
            transaction_type=StockTransactionType.IN,
            quantity=quantity,
            reason="Bill item removed",
            reference_number=reference or "",
            created_by_id=actor_user_id,
        )

    @staticmethod
    def update_price(*, product_id: UUID, new_price_cents: int) -> None:
        if new_price_cents is None or new_price_cents < 0:
            raise ValidationError({"unit_price_cents": "Unit price must be >= 0."})

        updated = Product.objects.filter(id=product_id).update(
            unit_price_cents=new_price_cents,
            updated_at=timezone.now(),
        )
        if not updated:
            raise NotFoundError(f"Product {product_id} not found.")

    @staticmethod
    @transaction.atomic
    def adjust_stock(
        *,
        product_id: UUID,
        quantity_change: int,
        reason: str = "",
        actor_user_id: int | None = None,
    ) -> Product:
        """
        Manual stock correction. Negative changes clamp at zero.
        """
        if not quantity_change:
            raise ValidationError({"quantity_change": "Must be a non-zero integer."})

        try:
            product = Product.objects.select_for_update().get(id=product_id)
        except Product.DoesNotExist:
            raise NotFoundError(f"Product {product_id} not found.")

        previous = product.stock_quantity
        Product.objects.filter(id=product_id).update(
            stock_quantity=Greatest(F("stock_quantity") + quantity_change, 0),
            updated_at=timezone.now(),
        )
        product.refresh_from_db()

        # ledger records what was applied, not what was asked for
        applied = product.stock_quantity - previous
        if applied != quantity_change:
            logger.info(
                "Stock adjustment for product %s clamped: requested %s, applied %s",
                product_id,
                quantity_change,
                applied,
            )

        StockTransaction.objects.create(
            product_id=product_id,
            transaction_type=StockTransactionType.ADJUSTMENT,
            quantity=applied,
            reason=reason or "Manual adjustment",
            created_by_id=actor_user_id,
        )
        return product
