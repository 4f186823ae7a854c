# clinic_core/visits/apps.py
from __future__ import annotations

from django.apps import AppConfig


class VisitsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.visits"
    label = "visits"
