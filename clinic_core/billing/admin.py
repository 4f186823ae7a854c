# clinic_core/billing/admin.py
from __future__ import annotations

from django.contrib import admin

from clinic_core.billing.models import Bill, BillItem


class BillItemInline(admin.TabularInline):
    model = BillItem
    extra = 0
    # items change through BillingService so stock and totals stay in step
    readonly_fields = ("line_number", "product", "description", "quantity", "unit_price_cents", "line_total_cents")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = (
        "bill_number",
        "patient",
        "visit",
        "total_cents",
        "payment_status",
        "payment_method",
        "created_at",
    )
    list_filter = ("payment_status", "payment_method", "created_at")
    search_fields = ("bill_number", "patient__first_name", "patient__last_name")
    readonly_fields = ("bill_number", "subtotal_cents", "tax_cents", "total_cents", "document_url")
    inlines = [BillItemInline]
    ordering = ("-created_at",)

    def has_delete_permission(self, request, obj=None):
        # deletion must return stock; use DELETE /api/v1/billing/bills/<id>/
        return False
