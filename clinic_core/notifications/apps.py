# clinic_core/notifications/apps.py
from __future__ import annotations

from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.notifications"
    label = "notifications"
