# clinic_core/notifications/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from clinic_core.notifications.models import NotificationAttempt


def attempts_for_bill(*, bill_id: UUID) -> QuerySet[NotificationAttempt]:
    return NotificationAttempt.objects.filter(bill_id=bill_id).order_by("-created_at")
