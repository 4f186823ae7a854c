# clinic_core/notifications/tests/test_dispatcher.py
from types import SimpleNamespace

import pytest
from django.core import mail

from clinic_core.billing.services import BillingService
from clinic_core.common.api.exceptions import NoContactMethodError, UpstreamServiceError
from clinic_core.notifications.channels import EmailChannel, NotificationChannel, WhatsAppChannel
from clinic_core.notifications.models import NotificationAttempt, NotificationStatus
from clinic_core.notifications.services import NotificationDispatcher

pytestmark = pytest.mark.django_db


class RecordingMessages:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(sid="SM123")


class BrokenChannel(NotificationChannel):
    name = "email"

    def address_for(self, patient):
        return patient.email

    def send(self, *, address, bill, patient):
        raise ConnectionError("smtp down")


@pytest.fixture
def whatsapp_from(settings):
    settings.TWILIO_WHATSAPP_FROM = "+15550000000"


def test_email_only_patient_goes_by_email(patient_email_only):
    bill = BillingService.create_bill(patient_id=patient_email_only.id)

    result = NotificationDispatcher().dispatch(bill)

    assert result.success is True
    assert result.method == "email"
    assert result.recipient == patient_email_only.email
    assert len(mail.outbox) == 1

    attempt = NotificationAttempt.objects.get(bill=bill)
    assert attempt.channel == "email"
    assert attempt.status == NotificationStatus.SENT
    assert attempt.sent_at is not None


def test_whatsapp_sent_first_when_configured(whatsapp_from, bill, patient):
    messages = RecordingMessages()
    channels = [WhatsAppChannel(client=SimpleNamespace(messages=messages)), EmailChannel()]

    result = NotificationDispatcher(channels=channels).dispatch(bill)

    assert result.method == "whatsapp"
    assert messages.calls[0]["to"] == f"whatsapp:{patient.phone}"
    assert messages.calls[0]["from_"] == "whatsapp:+15550000000"
    assert bill.bill_number in messages.calls[0]["body"]
    assert len(mail.outbox) == 0


def test_whatsapp_failure_falls_back_to_email(whatsapp_from, bill, patient):
    messages = RecordingMessages(error=RuntimeError("twilio unavailable"))
    channels = [WhatsAppChannel(client=SimpleNamespace(messages=messages)), EmailChannel()]

    result = NotificationDispatcher(channels=channels).dispatch(bill)

    assert result.method == "email"
    assert len(mail.outbox) == 1

    attempts = {a.channel: a for a in NotificationAttempt.objects.filter(bill=bill)}
    assert attempts["whatsapp"].status == NotificationStatus.FAILED
    assert "twilio unavailable" in attempts["whatsapp"].error_message
    assert attempts["email"].status == NotificationStatus.SENT


def test_all_channels_failing_is_upstream_error(patient_email_only):
    bill = BillingService.create_bill(patient_id=patient_email_only.id)

    with pytest.raises(UpstreamServiceError):
        NotificationDispatcher(channels=[BrokenChannel()]).dispatch(bill)

    attempt = NotificationAttempt.objects.get(bill=bill)
    assert attempt.status == NotificationStatus.FAILED
    assert attempt.error_message == "smtp down"


def test_no_contact_records_none_attempt(patient_no_contact):
    bill = BillingService.create_bill(patient_id=patient_no_contact.id)

    with pytest.raises(NoContactMethodError):
        NotificationDispatcher().dispatch(bill)

    attempt = NotificationAttempt.objects.get(bill=bill)
    assert (attempt.channel, attempt.recipient, attempt.status) == ("none", "no_contact", "failed")


def test_bill_without_patient_has_no_contact():
    bill = BillingService.create_bill()

    with pytest.raises(NoContactMethodError):
        NotificationDispatcher().dispatch(bill)
