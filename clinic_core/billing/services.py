# clinic_core/billing/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable
from uuid import UUID

from django.db import transaction
from django.db.models import Max
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.audit.services import AuditService
from clinic_core.billing import numbering
from clinic_core.billing.constants import TAX_RATE
from clinic_core.billing.models import Bill, BillItem, PaymentMethod, PaymentStatus
from clinic_core.common.api.exceptions import InsufficientStockError, NotFoundError
from clinic_core.common.money import round_half_up
from clinic_core.inventory.selectors import get_product
from clinic_core.inventory.services import InventoryAdjuster
from clinic_core.patients.selectors import get_patient
from clinic_core.visits.selectors import get_visit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BillTotals:
    subtotal_cents: int
    tax_cents: int
    total_cents: int

    def as_dict(self) -> dict[str, int]:
        return {
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
        }


@dataclass
class BatchAddResult:
    """
    Outcome of adding several items in one go.

    warnings: lines skipped for insufficient stock
    failures: lines rejected as invalid or referencing missing products
    """
    created: list[BillItem] = field(default_factory=list)
    warnings: list[dict[str, Any]] = field(default_factory=list)
    failures: list[dict[str, Any]] = field(default_factory=list)
    totals: BillTotals | None = None

    @property
    def succeeded(self) -> int:
        return len(self.created)

    @property
    def failed(self) -> int:
        return len(self.warnings) + len(self.failures)

    @property
    def summary(self) -> str:
        return f"{self.succeeded} succeeded, {self.failed} failed"


def _lock_bill(bill_id: UUID) -> Bill:
    try:
        return Bill.objects.select_for_update().get(id=bill_id)
    except Bill.DoesNotExist:
        raise NotFoundError(f"Bill {bill_id} not found.")


class BillItemStore:
    """
    Persistence for bill line items. No stock or totals side effects;
    BillingService sequences those.
    """

    @staticmethod
    def validate_line(*, quantity: int, unit_price_cents: int) -> None:
        if quantity is None or int(quantity) <= 0:
            raise ValidationError({"quantity": "Quantity must be > 0."})
        if unit_price_cents is None or int(unit_price_cents) < 0:
            raise ValidationError({"unit_price_cents": "Unit price must be >= 0."})

    @staticmethod
    def add_item(
        *,
        bill_id: UUID,
        description: str,
        quantity: int,
        unit_price_cents: int,
        product_id: UUID | None = None,
    ) -> BillItem:
        BillItemStore.validate_line(quantity=quantity, unit_price_cents=unit_price_cents)

        description = (description or "").strip()
        if not description:
            raise ValidationError({"description": "Description is required."})

        last = BillItem.objects.filter(bill_id=bill_id).aggregate(n=Max("line_number"))["n"] or 0

        return BillItem.objects.create(
            bill_id=bill_id,
            product_id=product_id,
            line_number=last + 1,
            description=description[:255],
            quantity=int(quantity),
            unit_price_cents=int(unit_price_cents),
            line_total_cents=int(quantity) * int(unit_price_cents),
        )

    @staticmethod
    def list_items(*, bill_id: UUID) -> list[BillItem]:
        return list(BillItem.objects.filter(bill_id=bill_id).order_by("line_number"))

    @staticmethod
    def remove_item(*, item_id: UUID) -> BillItem:
        """
        Deletes the item and returns the removed snapshot (pk cleared).
        """
        try:
            item = BillItem.objects.get(id=item_id)
        except BillItem.DoesNotExist:
            raise NotFoundError(f"Bill item {item_id} not found.")
        item.delete()
        return item


class BillTotalCalculator:
    @staticmethod
    def compute(line_totals: Iterable[int]) -> BillTotals:
        subtotal = sum(line_totals, 0)
        tax = round_half_up(Decimal(subtotal) * TAX_RATE)
        return BillTotals(subtotal_cents=subtotal, tax_cents=tax, total_cents=subtotal + tax)

    @staticmethod
    @transaction.atomic
    def recalculate(*, bill_id: UUID) -> BillTotals:
        """
        Derive subtotal/tax/total from the bill's current items and persist them.
        """
        items = BillItemStore.list_items(bill_id=bill_id)
        totals = BillTotalCalculator.compute(i.line_total_cents for i in items)

        updated = Bill.objects.filter(id=bill_id).update(
            subtotal_cents=totals.subtotal_cents,
            tax_cents=totals.tax_cents,
            total_cents=totals.total_cents,
            updated_at=timezone.now(),
        )
        if not updated:
            raise NotFoundError(f"Bill {bill_id} not found.")
        return totals


class BillingService:
    """
    Bill lifecycle. Every item mutation runs as one transaction:
    item write -> stock adjustment -> totals recalculation.
    """

    @staticmethod
    @transaction.atomic
    def create_bill(
        *,
        patient_id: UUID | None = None,
        visit_id: UUID | None = None,
        notes: str = "",
        actor_user_id: int | None = None,
    ) -> Bill:
        patient = get_patient(patient_id=patient_id) if patient_id else None
        visit = get_visit(visit_id=visit_id) if visit_id else None

        if visit and patient and visit.patient_id != patient.id:
            raise ValidationError({"visit": "Visit belongs to a different patient."})
        if visit and not patient:
            patient = visit.patient

        bill = Bill.objects.create(
            bill_number=numbering.generate(),
            patient=patient,
            visit=visit,
            notes=notes or "",
        )

        AuditService.log(
            event_code="bill.created",
            entity_type="Bill",
            entity_id=bill.id,
            actor_user_id=actor_user_id,
            metadata={"bill_number": bill.bill_number},
        )
        logger.info("Created bill %s", bill.bill_number)
        return bill

    @staticmethod
    @transaction.atomic
    def create_bill_for_visit(*, visit_id: UUID, actor_user_id: int | None = None) -> Bill:
        """
        One treatment line per visit treatment, then totals.
        """
        visit = get_visit(visit_id=visit_id)
        bill = BillingService.create_bill(visit_id=visit.id, actor_user_id=actor_user_id)

        for vt in visit.visit_treatments.select_related("treatment").order_by("created_at"):
            BillItemStore.add_item(
                bill_id=bill.id,
                description=vt.treatment.name,
                quantity=vt.quantity,
                unit_price_cents=vt.unit_price_cents,
            )

        BillTotalCalculator.recalculate(bill_id=bill.id)
        bill.refresh_from_db()
        return bill

    @staticmethod
    def _add_item_locked(
        *,
        bill: Bill,
        description: str = "",
        quantity: int = 1,
        unit_price_cents: int | None = None,
        product_id: UUID | None = None,
        update_product_price: bool = False,
        actor_user_id: int | None = None,
    ) -> BillItem:
        if product_id is None:
            BillItemStore.validate_line(quantity=quantity, unit_price_cents=unit_price_cents)
            return BillItemStore.add_item(
                bill_id=bill.id,
                description=description,
                quantity=quantity,
                unit_price_cents=unit_price_cents,
            )

        product = get_product(product_id=product_id)
        price = product.unit_price_cents if unit_price_cents is None else unit_price_cents
        BillItemStore.validate_line(quantity=quantity, unit_price_cents=price)

        InventoryAdjuster.reserve_stock(
            product_id=product.id,
            quantity=quantity,
            reference=bill.bill_number,
            actor_user_id=actor_user_id,
        )
        if update_product_price and price != product.unit_price_cents:
            InventoryAdjuster.update_price(product_id=product.id, new_price_cents=price)

        return BillItemStore.add_item(
            bill_id=bill.id,
            product_id=product.id,
            description=description or product.name,
            quantity=quantity,
            unit_price_cents=price,
        )

    @staticmethod
    @transaction.atomic
    def add_item(
        *,
        bill_id: UUID,
        description: str = "",
        quantity: int = 1,
        unit_price_cents: int | None = None,
        product_id: UUID | None = None,
        update_product_price: bool = False,
        actor_user_id: int | None = None,
    ) -> BillItem:
        """
        Adds one line. Product lines reserve stock first; InsufficientStockError
        leaves stock, items and totals untouched.
        """
        bill = _lock_bill(bill_id)

        item = BillingService._add_item_locked(
            bill=bill,
            description=description,
            quantity=quantity,
            unit_price_cents=unit_price_cents,
            product_id=product_id,
            update_product_price=update_product_price,
            actor_user_id=actor_user_id,
        )
        BillTotalCalculator.recalculate(bill_id=bill.id)

        AuditService.log(
            event_code="bill.item_added",
            entity_type="Bill",
            entity_id=bill.id,
            actor_user_id=actor_user_id,
            metadata={
                "item_id": str(item.id),
                "product_id": str(item.product_id) if item.product_id else None,
                "quantity": item.quantity,
                "line_total_cents": item.line_total_cents,
            },
        )
        return item

    @staticmethod
    @transaction.atomic
    def add_items(
        *,
        bill_id: UUID,
        items: Iterable[dict[str, Any]],
        actor_user_id: int | None = None,
    ) -> BatchAddResult:
        """
        Adds several lines, skipping the ones that cannot be billed.

        Each line runs in its own savepoint. Insufficient stock is reported as
        a warning, invalid input or a missing product as a failure; neither
        aborts the batch. Totals are recalculated once at the end.
        """
        bill = _lock_bill(bill_id)
        result = BatchAddResult()

        for index, entry in enumerate(items):
            try:
                with transaction.atomic():
                    item = BillingService._add_item_locked(
                        bill=bill,
                        description=entry.get("description", ""),
                        quantity=entry.get("quantity", 1),
                        unit_price_cents=entry.get("unit_price_cents"),
                        product_id=entry.get("product_id"),
                        update_product_price=entry.get("update_product_price", False),
                        actor_user_id=actor_user_id,
                    )
            except InsufficientStockError as exc:
                result.warnings.append({"index": index, **exc.as_dict()})
            except (ValidationError, NotFoundError) as exc:
                result.failures.append({"index": index, "error": exc.detail})
            else:
                result.created.append(item)

        result.totals = BillTotalCalculator.recalculate(bill_id=bill.id)

        AuditService.log(
            event_code="bill.items_added",
            entity_type="Bill",
            entity_id=bill.id,
            actor_user_id=actor_user_id,
            metadata={"succeeded": result.succeeded, "failed": result.failed},
        )
        logger.info("Batch add on bill %s: %s", bill.bill_number, result.summary)
        return result

    @staticmethod
    @transaction.atomic
    def remove_item(*, item_id: UUID, actor_user_id: int | None = None) -> BillTotals:
        """
        Deletes a line, returns its stock (product lines) and refreshes totals.
        """
        bill_id = BillItem.objects.filter(id=item_id).values_list("bill_id", flat=True).first()
        if bill_id is None:
            raise NotFoundError(f"Bill item {item_id} not found.")
        bill = _lock_bill(bill_id)

        removed = BillItemStore.remove_item(item_id=item_id)
        if removed.product_id:
            InventoryAdjuster.release_stock(
                product_id=removed.product_id,
                quantity=removed.quantity,
                reference=bill.bill_number,
                actor_user_id=actor_user_id,
            )

        totals = BillTotalCalculator.recalculate(bill_id=bill.id)

        AuditService.log(
            event_code="bill.item_removed",
            entity_type="Bill",
            entity_id=bill.id,
            actor_user_id=actor_user_id,
            metadata={
                "item_id": str(item_id),
                "product_id": str(removed.product_id) if removed.product_id else None,
                "quantity": removed.quantity,
            },
        )
        return totals

    @staticmethod
    def sync_total(*, bill_id: UUID, total_amount_cents: int | None = None) -> Bill:
        """
        Refreshes stored totals from the items. A client-supplied total is
        only accepted when it matches the derived one.
        """
        totals = BillTotalCalculator.recalculate(bill_id=bill_id)

        if total_amount_cents is not None and total_amount_cents != totals.total_cents:
            raise ValidationError(
                {
                    "total_amount": (
                        f"Total is derived from bill items; expected {totals.total_cents} "
                        f"minor units, got {total_amount_cents}."
                    )
                }
            )
        return Bill.objects.get(id=bill_id)

    @staticmethod
    @transaction.atomic
    def update_payment(
        *,
        bill_id: UUID,
        payment_status: str,
        payment_method: str | None = None,
        actor_user_id: int | None = None,
    ) -> Bill:
        if payment_status not in PaymentStatus.values:
            raise ValidationError({"payment_status": f"Must be one of {', '.join(PaymentStatus.values)}."})
        if payment_method and payment_method not in PaymentMethod.values:
            raise ValidationError({"payment_method": f"Must be one of {', '.join(PaymentMethod.values)}."})

        bill = _lock_bill(bill_id)
        previous = bill.payment_status

        if payment_status == PaymentStatus.PAID:
            bill.mark_paid(payment_method or "")
        else:
            bill.payment_status = payment_status
            bill.payment_date = None
            if payment_method:
                bill.payment_method = payment_method

        bill.save(update_fields=["payment_status", "payment_method", "payment_date", "updated_at"])

        AuditService.log(
            event_code="bill.payment_updated",
            entity_type="Bill",
            entity_id=bill.id,
            actor_user_id=actor_user_id,
            metadata={"from": previous, "to": bill.payment_status, "method": bill.payment_method},
        )
        return bill

    @staticmethod
    def attach_document(*, bill_id: UUID, document_url: str) -> None:
        updated = Bill.objects.filter(id=bill_id).update(document_url=document_url, updated_at=timezone.now())
        if not updated:
            raise NotFoundError(f"Bill {bill_id} not found.")

    @staticmethod
    @transaction.atomic
    def delete_bill(*, bill_id: UUID, actor_user_id: int | None = None) -> None:
        """
        Deletes a bill after returning the stock held by its product lines.
        """
        bill = _lock_bill(bill_id)

        items = BillItemStore.list_items(bill_id=bill.id)
        for item in items:
            if item.product_id:
                InventoryAdjuster.release_stock(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    reference=bill.bill_number,
                    actor_user_id=actor_user_id,
                )
        BillItem.objects.filter(bill_id=bill.id).delete()
        bill.delete()

        AuditService.log(
            event_code="bill.deleted",
            entity_type="Bill",
            entity_id=bill_id,
            actor_user_id=actor_user_id,
            metadata={"bill_number": bill.bill_number, "items": len(items)},
        )
        logger.info("Deleted bill %s", bill.bill_number)
