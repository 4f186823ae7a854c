# clinic_core/inventory/apps.py
from __future__ import annotations

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.inventory"
    label = "inventory"
