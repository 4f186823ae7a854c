# clinic_core/notifications/admin.py
from django.contrib import admin

from clinic_core.notifications.models import NotificationAttempt


@admin.register(NotificationAttempt)
class NotificationAttemptAdmin(admin.ModelAdmin):
    list_display = ("bill", "channel", "recipient", "status", "sent_at", "created_at")
    list_filter = ("channel", "status")
    search_fields = ("bill__bill_number", "recipient")
    ordering = ("-created_at",)
