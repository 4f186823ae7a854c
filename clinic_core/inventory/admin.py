# clinic_core/inventory/admin.py
from django.contrib import admin

from clinic_core.inventory.models import Product, StockTransaction


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "unit_price_cents", "stock_quantity", "min_stock_level", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("name", "category")
    # stock only moves through InventoryAdjuster
    readonly_fields = ("stock_quantity",)


@admin.register(StockTransaction)
class StockTransactionAdmin(admin.ModelAdmin):
    list_display = ("product", "transaction_type", "quantity", "reference_number", "created_at")
    list_filter = ("transaction_type",)
    search_fields = ("product__name", "reference_number")
    ordering = ("-created_at",)
