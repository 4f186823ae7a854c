# clinic_core/billing/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from clinic_core.billing.models import Bill
from clinic_core.common.api.exceptions import NotFoundError


def bills_filtered(
    *,
    patient_id: UUID | None = None,
    visit_id: UUID | None = None,
    payment_status: str | None = None,
) -> QuerySet[Bill]:
    qs = Bill.objects.select_related("patient", "visit").order_by("-created_at")

    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if visit_id:
        qs = qs.filter(visit_id=visit_id)
    if payment_status:
        qs = qs.filter(payment_status=payment_status)

    return qs


def get_bill(*, bill_id: UUID) -> Bill:
    try:
        return Bill.objects.select_related("patient", "visit").prefetch_related("items").get(id=bill_id)
    except Bill.DoesNotExist:
        raise NotFoundError(f"Bill {bill_id} not found.")
