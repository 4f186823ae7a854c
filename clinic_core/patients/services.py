# clinic_core/patients/services.py
from __future__ import annotations

from django.db import transaction

from clinic_core.audit.services import AuditService
from clinic_core.patients.models import Patient


class PatientService:
    EDITABLE_FIELDS = {
        "first_name",
        "last_name",
        "email",
        "phone",
        "date_of_birth",
        "gender",
        "address",
        "emergency_contact_name",
        "emergency_contact_phone",
        "medical_history",
        "allergies",
    }

    @staticmethod
    @transaction.atomic
    def create_patient(*, actor_user_id: int | None = None, **data) -> Patient:
        fields = {k: v for k, v in data.items() if k in PatientService.EDITABLE_FIELDS}
        patient = Patient.objects.create(**fields)

        AuditService.log(
            event_code="patient.created",
            entity_type="Patient",
            entity_id=patient.id,
            actor_user_id=actor_user_id,
        )
        return patient

    @staticmethod
    @transaction.atomic
    def update_patient(*, patient: Patient, actor_user_id: int | None = None, data: dict) -> Patient:
        updates = {k: v for k, v in (data or {}).items() if k in PatientService.EDITABLE_FIELDS}

        for k, v in updates.items():
            setattr(patient, k, v)
        patient.save()

        AuditService.log(
            event_code="patient.updated",
            entity_type="Patient",
            entity_id=patient.id,
            actor_user_id=actor_user_id,
            metadata={"updated_fields": sorted(updates.keys())},
        )
        return patient
