# clinic_core/notifications/models.py
from django.db import models

from clinic_core.common.models import UUIDModel


class NotificationChannelType(models.TextChoices):
    WHATSAPP = "whatsapp", "WhatsApp"
    EMAIL = "email", "Email"
    NONE = "none", "None"


class NotificationStatus(models.TextChoices):
    SENT = "sent", "Sent"
    FAILED = "failed", "Failed"


class NotificationAttempt(UUIDModel):
    """
    One delivery attempt for a bill notification, kept for auditing whether
    or not it succeeded.
    """
    bill = models.ForeignKey("billing.Bill", on_delete=models.CASCADE, related_name="notification_attempts")

    channel = models.CharField(max_length=16, choices=NotificationChannelType.choices, db_index=True)
    recipient = models.CharField(max_length=255)
    status = models.CharField(max_length=16, choices=NotificationStatus.choices, db_index=True)
    error_message = models.TextField(blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "notifications_attempt"
        indexes = [
            models.Index(fields=["bill", "created_at"]),
        ]
