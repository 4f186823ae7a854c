# clinic_core/common/apps.py
from __future__ import annotations

from django.apps import AppConfig


class CommonConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.common"
    label = "common"
