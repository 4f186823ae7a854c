# clinic_core/visits/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from clinic_core.common.api.exceptions import NotFoundError
from clinic_core.visits.models import Treatment, Visit


def get_visit(*, visit_id: UUID) -> Visit:
    try:
        return Visit.objects.select_related("patient").get(id=visit_id)
    except Visit.DoesNotExist:
        raise NotFoundError(f"Visit {visit_id} not found.")


def visits_filtered(*, patient_id: UUID | None = None, status: str | None = None) -> QuerySet[Visit]:
    qs = Visit.objects.select_related("patient").order_by("-visit_date")

    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if status:
        qs = qs.filter(status=status)

    return qs


def active_treatments() -> QuerySet[Treatment]:
    return Treatment.objects.filter(is_active=True).order_by("name")
