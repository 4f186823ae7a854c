# clinic_core/expenses/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from clinic_core.common.models import UUIDModel


class Expense(UUIDModel):
    """
    Clinic running cost (rent, supplies, salaries...). amount_cents in minor units.
    """
    description = models.CharField(max_length=255)
    amount_cents = models.BigIntegerField()
    category = models.CharField(max_length=64, db_index=True)
    expense_date = models.DateField(default=timezone.localdate, db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="expenses",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "expenses_expense"
        ordering = ["-expense_date", "-created_at"]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount_cents__gte=0), name="ck_expense_amount_non_negative"),
        ]

    def __str__(self) -> str:
        return f"{self.category}: {self.description}"
