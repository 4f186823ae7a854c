# clinic_core/expenses/admin.py
from django.contrib import admin

from clinic_core.expenses.models import Expense


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ("expense_date", "category", "description", "amount_cents", "created_by")
    list_filter = ("category", "expense_date")
    search_fields = ("description", "category")
    ordering = ("-expense_date",)
