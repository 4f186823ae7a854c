# clinic_core/visits/services.py
from __future__ import annotations

from typing import Iterable
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from clinic_core.audit.services import AuditService
from clinic_core.common.api.exceptions import NotFoundError
from clinic_core.patients.selectors import get_patient
from clinic_core.visits.models import Treatment, Visit, VisitStatus, VisitTreatment


class TreatmentService:
    @staticmethod
    def create(*, name: str, price_cents: int, description: str = "", duration_minutes: int | None = None) -> Treatment:
        if price_cents < 0:
            raise ValidationError({"price_cents": "Must be >= 0."})
        return Treatment.objects.create(
            name=name,
            description=description or "",
            price_cents=price_cents,
            duration_minutes=duration_minutes,
        )


class VisitService:
    EDITABLE_FIELDS = {"visit_type", "status", "notes", "visit_date"}

    @staticmethod
    @transaction.atomic
    def create_visit(
        *,
        patient_id: UUID,
        actor_user_id: int | None = None,
        treatments: Iterable[dict] = (),
        visit_type: str = "consultation",
        visit_date=None,
        notes: str = "",
    ) -> Visit:
        """
        Creates a visit and its treatment lines.

        Each treatment entry: {"treatment_id", "quantity"?, "unit_price_cents"?}.
        unit_price_cents defaults to the catalog price.
        """
        patient = get_patient(patient_id=patient_id)

        kwargs = {"patient": patient, "visit_type": visit_type or "consultation", "notes": notes or ""}
        if visit_date is not None:
            kwargs["visit_date"] = visit_date
        if actor_user_id is not None:
            kwargs["created_by_id"] = actor_user_id
        visit = Visit.objects.create(**kwargs)

        for entry in treatments:
            VisitService.add_treatment(
                visit=visit,
                treatment_id=entry["treatment_id"],
                quantity=entry.get("quantity", 1),
                unit_price_cents=entry.get("unit_price_cents"),
            )

        AuditService.log(
            event_code="visit.created",
            entity_type="Visit",
            entity_id=visit.id,
            actor_user_id=actor_user_id,
            metadata={"patient_id": str(patient.id)},
        )
        return visit

    @staticmethod
    @transaction.atomic
    def update_visit(*, visit: Visit, actor_user_id: int | None = None, data: dict) -> Visit:
        """
        Header edits only. Treatment lines change through add_treatment /
        remove_treatment; bills already issued keep their own snapshot.
        """
        updates = {k: v for k, v in (data or {}).items() if k in VisitService.EDITABLE_FIELDS}
        if "status" in updates and updates["status"] not in VisitStatus.values:
            raise ValidationError({"status": f"Must be one of {', '.join(VisitStatus.values)}."})

        for k, v in updates.items():
            setattr(visit, k, v)
        visit.save(update_fields=[*updates.keys(), "updated_at"])

        AuditService.log(
            event_code="visit.updated",
            entity_type="Visit",
            entity_id=visit.id,
            actor_user_id=actor_user_id,
            metadata={"updated_fields": sorted(updates.keys())},
        )
        return visit

    @staticmethod
    def add_treatment(
        *,
        visit: Visit,
        treatment_id: UUID,
        quantity: int = 1,
        unit_price_cents: int | None = None,
    ) -> VisitTreatment:
        if quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be > 0."})

        try:
            treatment = Treatment.objects.get(id=treatment_id)
        except Treatment.DoesNotExist:
            raise NotFoundError(f"Treatment {treatment_id} not found.")

        price = treatment.price_cents if unit_price_cents is None else unit_price_cents
        if price < 0:
            raise ValidationError({"unit_price_cents": "Unit price must be >= 0."})

        return VisitTreatment.objects.create(
            visit=visit,
            treatment=treatment,
            quantity=quantity,
            unit_price_cents=price,
        )

    @staticmethod
    def remove_treatment(*, visit: Visit, visit_treatment_id: UUID) -> None:
        deleted, _ = VisitTreatment.objects.filter(id=visit_treatment_id, visit=visit).delete()
        if not deleted:
            raise NotFoundError(f"Visit treatment {visit_treatment_id} not found.")
