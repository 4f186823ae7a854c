# clinic_core/expenses/apps.py
from __future__ import annotations

from django.apps import AppConfig


class ExpensesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.expenses"
    label = "expenses"
