# clinic_core/billing/models.py
from __future__ import annotations

from django.db import models
from django.utils import timezone

from clinic_core.common.models import UUIDModel
from clinic_core.inventory.models import Product
from clinic_core.patients.models import Patient
from clinic_core.visits.models import Visit


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    OVERDUE = "overdue", "Overdue"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    CARD = "card", "Card"
    INSURANCE = "insurance", "Insurance"
    BANK_TRANSFER = "bank_transfer", "Bank Transfer"
    OTHER = "other", "Other"


class Bill(UUIDModel):
    """
    One invoice for a visit or an ad-hoc purchase.

    Totals are derived from the bill's items by BillTotalCalculator and are
    never written directly:
      total_cents == subtotal_cents + tax_cents
      tax_cents == round_half_up(subtotal_cents * TAX_RATE)
    """
    bill_number = models.CharField(max_length=32, unique=True)

    patient = models.ForeignKey(
        Patient,
        on_delete=models.PROTECT,
        related_name="bills",
        null=True,
        blank=True,
    )
    visit = models.ForeignKey(
        Visit,
        on_delete=models.PROTECT,
        related_name="bills",
        null=True,
        blank=True,
    )

    subtotal_cents = models.BigIntegerField(default=0)
    tax_cents = models.BigIntegerField(default=0)
    total_cents = models.BigIntegerField(default=0)

    payment_status = models.CharField(
        max_length=16,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
    )
    payment_method = models.CharField(max_length=32, choices=PaymentMethod.choices, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)

    document_url = models.URLField(max_length=500, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = "billing_bill"
        indexes = [
            models.Index(fields=["payment_status", "created_at"]),
            models.Index(fields=["patient", "created_at"]),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(subtotal_cents__gte=0), name="ck_bill_subtotal_non_negative"),
            models.CheckConstraint(condition=models.Q(tax_cents__gte=0), name="ck_bill_tax_non_negative"),
            models.CheckConstraint(condition=models.Q(total_cents__gte=0), name="ck_bill_total_non_negative"),
        ]

    def __str__(self) -> str:
        return self.bill_number

    def mark_paid(self, method: str = "") -> None:
        self.payment_status = PaymentStatus.PAID
        self.payment_date = timezone.now()
        if method:
            self.payment_method = method


class BillItem(UUIDModel):
    """
    Snapshot line entry. Description and unit price are captured at billing
    time; line_total_cents is fixed at creation (delete + re-add to change).
    Treatment lines carry no product.
    """
    # items hold reserved stock; BillingService.delete_bill releases it first
    bill = models.ForeignKey(Bill, on_delete=models.PROTECT, related_name="items")
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="bill_items",
        null=True,
        blank=True,
    )

    line_number = models.PositiveIntegerField()
    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    unit_price_cents = models.BigIntegerField()
    line_total_cents = models.BigIntegerField()

    class Meta:
        db_table = "billing_bill_item"
        ordering = ["line_number"]
        constraints = [
            models.UniqueConstraint(fields=["bill", "line_number"], name="uq_bill_item_line_number"),
            models.CheckConstraint(condition=models.Q(quantity__gt=0), name="ck_bill_item_qty_positive"),
            models.CheckConstraint(condition=models.Q(unit_price_cents__gte=0), name="ck_bill_item_price_non_negative"),
        ]
