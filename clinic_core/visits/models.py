# clinic_core/visits/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from clinic_core.common.models import UUIDModel
from clinic_core.patients.models import Patient


class Treatment(UUIDModel):
    """
    Treatment catalog entry. price_cents is the list price in minor units.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price_cents = models.BigIntegerField(default=0)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "visits_treatment"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(condition=models.Q(price_cents__gte=0), name="ck_treatment_price_non_negative"),
        ]

    def __str__(self) -> str:
        return self.name


class VisitStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class Visit(UUIDModel):
    """
    Clinical encounter. Supplies the treatments that end up on a bill.
    """
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="visits")

    visit_date = models.DateTimeField(default=timezone.now, db_index=True)
    visit_type = models.CharField(max_length=64, default="consultation")
    status = models.CharField(max_length=32, choices=VisitStatus.choices, default=VisitStatus.COMPLETED, db_index=True)
    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="created_visits",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "visits_visit"
        indexes = [
            models.Index(fields=["patient", "visit_date"]),
        ]

    def __str__(self) -> str:
        return f"Visit({self.patient_id}, {self.visit_date:%Y-%m-%d})"


class VisitTreatment(UUIDModel):
    """
    Treatment performed during a visit, price captured at the time of the visit.
    """
    visit = models.ForeignKey(Visit, on_delete=models.CASCADE, related_name="visit_treatments")
    treatment = models.ForeignKey(Treatment, on_delete=models.PROTECT, related_name="visit_treatments")

    quantity = models.PositiveIntegerField(default=1)
    unit_price_cents = models.BigIntegerField(default=0)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = "visits_visit_treatment"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gt=0), name="ck_visit_treatment_qty_positive"),
            models.CheckConstraint(condition=models.Q(unit_price_cents__gte=0), name="ck_visit_treatment_price_non_negative"),
        ]
