# clinic_core/notifications/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from django.utils import timezone

from clinic_core.common.api.exceptions import NoContactMethodError, UpstreamServiceError
from clinic_core.notifications.channels import NotificationChannel, default_channels
from clinic_core.notifications.models import (
    NotificationAttempt,
    NotificationChannelType,
    NotificationStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    method: str
    recipient: str


class NotificationDispatcher:
    """
    Sends a bill to its patient over the first channel that works.

    Channels are tried in order; a channel is skipped when the patient has
    no address for it or it is not configured. Every attempt is recorded.
    """

    def __init__(self, channels: Sequence[NotificationChannel] | None = None):
        self.channels = list(channels) if channels is not None else default_channels()

    @staticmethod
    def _record(*, bill, channel: str, recipient: str, status: str, error: str = "") -> NotificationAttempt:
        return NotificationAttempt.objects.create(
            bill=bill,
            channel=channel,
            recipient=recipient,
            status=status,
            error_message=error,
            sent_at=timezone.now() if status == NotificationStatus.SENT else None,
        )

    def dispatch(self, bill) -> DispatchResult:
        patient = bill.patient
        attempted = 0

        for channel in self.channels:
            address = channel.address_for(patient) if patient is not None else ""
            if not address or not channel.is_configured():
                continue

            attempted += 1
            try:
                channel.send(address=address, bill=bill, patient=patient)
            except Exception as exc:
                logger.warning("%s send failed for bill %s: %s", channel.name, bill.bill_number, exc)
                self._record(
                    bill=bill,
                    channel=channel.name,
                    recipient=address,
                    status=NotificationStatus.FAILED,
                    error=str(exc) or type(exc).__name__,
                )
                continue

            self._record(bill=bill, channel=channel.name, recipient=address, status=NotificationStatus.SENT)
            logger.info("Sent bill %s via %s", bill.bill_number, channel.name)
            return DispatchResult(success=True, method=str(channel.name), recipient=address)

        if attempted:
            raise UpstreamServiceError("Failed to send notification on every available channel.")

        self._record(
            bill=bill,
            channel=NotificationChannelType.NONE,
            recipient="no_contact",
            status=NotificationStatus.FAILED,
            error="No phone or email available",
        )
        raise NoContactMethodError()
