# clinic_core/patients/apps.py
from __future__ import annotations

from django.apps import AppConfig


class PatientsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.patients"
    label = "patients"
