# clinic_core/inventory/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models

from clinic_core.common.models import UUIDModel


class Product(UUIDModel):
    """
    Inventory-tracked item.

    stock_quantity is only mutated through InventoryAdjuster (conditional
    F() updates), never read-modify-written from Python.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=64, blank=True, db_index=True)

    unit_price_cents = models.BigIntegerField(default=0)
    stock_quantity = models.IntegerField(default=0)
    min_stock_level = models.IntegerField(default=0)

    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "inventory_product"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(condition=models.Q(stock_quantity__gte=0), name="ck_product_stock_non_negative"),
            models.CheckConstraint(condition=models.Q(unit_price_cents__gte=0), name="ck_product_price_non_negative"),
        ]

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock_level

    def __str__(self) -> str:
        return self.name


class StockTransactionType(models.TextChoices):
    IN = "in", "Stock In"
    OUT = "out", "Stock Out"
    ADJUSTMENT = "adjustment", "Adjustment"


class StockTransaction(UUIDModel):
    """
    Ledger row per stock movement. in/out rows carry a positive quantity;
    adjustment rows carry the signed change.
    """
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="stock_transactions")
    transaction_type = models.CharField(max_length=16, choices=StockTransactionType.choices, db_index=True)
    quantity = models.IntegerField()

    reason = models.CharField(max_length=255, blank=True)
    reference_number = models.CharField(max_length=64, blank=True, db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="stock_transactions",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "inventory_stock_transaction"
        indexes = [
            models.Index(fields=["product", "created_at"]),
        ]
