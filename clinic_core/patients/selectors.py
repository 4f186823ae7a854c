# clinic_core/patients/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Q, QuerySet

from clinic_core.common.api.exceptions import NotFoundError
from clinic_core.patients.models import Patient


def get_patient(*, patient_id: UUID) -> Patient:
    try:
        return Patient.objects.get(id=patient_id)
    except Patient.DoesNotExist:
        raise NotFoundError(f"Patient {patient_id} not found.")


def search_patients(*, q: str | None = None) -> QuerySet[Patient]:
    qs = Patient.objects.all()

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(first_name__icontains=qv)
            | Q(last_name__icontains=qv)
            | Q(phone__icontains=qv)
            | Q(email__icontains=qv)
        )

    return qs.order_by("-created_at")
