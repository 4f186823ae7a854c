# clinic_core/notifications/channels.py
from __future__ import annotations

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from twilio.rest import Client

from clinic_core.common.money import format_minor
from clinic_core.notifications.models import NotificationChannelType


class NotificationChannel:
    """
    One way of reaching a patient. Subclasses pick the address off the
    patient and deliver the invoice message; send() raises on failure.
    """
    name: str = ""

    def address_for(self, patient) -> str:
        raise NotImplementedError

    def is_configured(self) -> bool:
        return True

    def send(self, *, address: str, bill, patient) -> None:
        raise NotImplementedError


def _clinic_name() -> str:
    return getattr(settings, "CLINIC_NAME", "ClinicSync")


def build_text_message(bill, patient) -> str:
    lines = [
        f"{_clinic_name()} Invoice",
        "",
        f"Invoice #: {bill.bill_number}",
        f"Patient: {patient.full_name}",
        f"Amount: {format_minor(bill.total_cents)}",
        f"Status: {bill.payment_status}",
    ]
    if bill.document_url:
        lines.append(f"View: {bill.document_url}")
    lines += ["", "Please contact us for payment details."]
    return "\n".join(lines)


class WhatsAppChannel(NotificationChannel):
    name = NotificationChannelType.WHATSAPP

    def __init__(self, client: Client | None = None):
        self._client = client

    def address_for(self, patient) -> str:
        return (patient.phone or "").strip()

    def is_configured(self) -> bool:
        if self._client is not None:
            return bool(settings.TWILIO_WHATSAPP_FROM)
        return bool(settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_WHATSAPP_FROM)

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        return self._client

    def send(self, *, address: str, bill, patient) -> None:
        to_number = address if address.startswith("+") else f"+{address}"
        self._get_client().messages.create(
            body=build_text_message(bill, patient),
            from_=f"whatsapp:{settings.TWILIO_WHATSAPP_FROM}",
            to=f"whatsapp:{to_number}",
        )


class EmailChannel(NotificationChannel):
    name = NotificationChannelType.EMAIL

    def address_for(self, patient) -> str:
        return (patient.email or "").strip()

    def send(self, *, address: str, bill, patient) -> None:
        context = {
            "clinic_name": _clinic_name(),
            "bill": bill,
            "patient": patient,
            "total": format_minor(bill.total_cents),
        }
        msg = EmailMultiAlternatives(
            subject=f"Invoice {bill.bill_number} - {patient.full_name}",
            body=build_text_message(bill, patient),
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[address],
        )
        msg.attach_alternative(render_to_string("notifications/invoice_email.html", context), "text/html")
        msg.send(fail_silently=False)


def default_channels() -> list[NotificationChannel]:
    # order is the fallback order
    return [WhatsAppChannel(), EmailChannel()]
