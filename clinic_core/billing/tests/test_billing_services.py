# clinic_core/billing/tests/test_billing_services.py
import pytest
from rest_framework.exceptions import ValidationError

from clinic_core.audit.models import AuditEvent
from clinic_core.billing.models import BillItem, PaymentStatus
from clinic_core.billing.services import BillingService
from clinic_core.common.api.exceptions import InsufficientStockError, NotFoundError
from clinic_core.inventory.models import Product, StockTransaction, StockTransactionType

pytestmark = pytest.mark.django_db


def test_add_treatment_line_updates_totals(bill):
    item = BillingService.add_item(bill_id=bill.id, description="Consultation", quantity=2, unit_price_cents=5000)

    assert item.line_number == 1
    assert item.line_total_cents == 10000
    assert item.product_id is None

    bill.refresh_from_db()
    assert (bill.subtotal_cents, bill.tax_cents, bill.total_cents) == (10000, 1000, 11000)


def test_add_product_line_reserves_stock_and_defaults_price(bill, product):
    item = BillingService.add_item(bill_id=bill.id, product_id=product.id, quantity=3)

    assert item.description == product.name
    assert item.unit_price_cents == 500
    assert item.line_total_cents == 1500

    product.refresh_from_db()
    assert product.stock_quantity == 7

    out = StockTransaction.objects.get(product=product, transaction_type=StockTransactionType.OUT)
    assert out.quantity == 3
    assert out.reference_number == bill.bill_number


def test_add_product_line_can_update_catalog_price(bill, product):
    BillingService.add_item(
        bill_id=bill.id,
        product_id=product.id,
        quantity=1,
        unit_price_cents=650,
        update_product_price=True,
    )

    product.refresh_from_db()
    assert product.unit_price_cents == 650


def test_insufficient_stock_leaves_bill_and_stock_untouched(bill):
    scarce = Product.objects.create(name="Splint", unit_price_cents=2500, stock_quantity=3)

    with pytest.raises(InsufficientStockError) as ei:
        BillingService.add_item(bill_id=bill.id, product_id=scarce.id, quantity=5)

    assert ei.value.available == 3
    assert ei.value.requested == 5

    scarce.refresh_from_db()
    assert scarce.stock_quantity == 3
    assert not BillItem.objects.filter(bill=bill).exists()

    bill.refresh_from_db()
    assert bill.total_cents == 0


def test_invalid_lines_are_rejected(bill):
    with pytest.raises(ValidationError):
        BillingService.add_item(bill_id=bill.id, description="Bad", quantity=0, unit_price_cents=100)
    with pytest.raises(ValidationError):
        BillingService.add_item(bill_id=bill.id, description="Bad", quantity=1, unit_price_cents=-1)
    assert not BillItem.objects.filter(bill=bill).exists()


def test_add_item_unknown_bill_or_product(bill):
    import uuid

    with pytest.raises(NotFoundError):
        BillingService.add_item(bill_id=uuid.uuid4(), description="X", quantity=1, unit_price_cents=100)
    with pytest.raises(NotFoundError):
        BillingService.add_item(bill_id=bill.id, product_id=uuid.uuid4(), quantity=1)


def test_remove_item_releases_stock_and_recalculates(bill):
    first = Product.objects.create(name="A", unit_price_cents=2000, stock_quantity=5)
    second = Product.objects.create(name="B", unit_price_cents=3000, stock_quantity=5)

    a = BillingService.add_item(bill_id=bill.id, product_id=first.id, quantity=1)
    BillingService.add_item(bill_id=bill.id, product_id=second.id, quantity=1)

    totals = BillingService.remove_item(item_id=a.id)

    assert totals.as_dict() == {"subtotal_cents": 3000, "tax_cents": 300, "total_cents": 3300}
    first.refresh_from_db()
    assert first.stock_quantity == 5
    assert list(BillItem.objects.filter(bill=bill).values_list("description", flat=True)) == ["B"]


def test_add_then_remove_restores_totals(bill):
    BillingService.add_item(bill_id=bill.id, description="Consult", quantity=1, unit_price_cents=4000)
    bill.refresh_from_db()
    before = (bill.subtotal_cents, bill.tax_cents, bill.total_cents)

    extra = BillingService.add_item(bill_id=bill.id, description="Dressing", quantity=2, unit_price_cents=750)
    BillingService.remove_item(item_id=extra.id)

    bill.refresh_from_db()
    assert (bill.subtotal_cents, bill.tax_cents, bill.total_cents) == before


def test_remove_unknown_item_is_not_found():
    import uuid

    with pytest.raises(NotFoundError):
        BillingService.remove_item(item_id=uuid.uuid4())


def test_line_numbers_keep_increasing_after_removal(bill):
    a = BillingService.add_item(bill_id=bill.id, description="One", quantity=1, unit_price_cents=100)
    b = BillingService.add_item(bill_id=bill.id, description="Two", quantity=1, unit_price_cents=100)
    BillingService.remove_item(item_id=a.id)
    c = BillingService.add_item(bill_id=bill.id, description="Three", quantity=1, unit_price_cents=100)

    assert (b.line_number, c.line_number) == (2, 3)


def test_batch_add_skips_and_reports(bill, product):
    import uuid

    scarce = Product.objects.create(name="Splint", unit_price_cents=2500, stock_quantity=1)

    result = BillingService.add_items(
        bill_id=bill.id,
        items=[
            {"product_id": product.id, "quantity": 2},
            {"product_id": scarce.id, "quantity": 4},
            {"product_id": uuid.uuid4(), "quantity": 1},
            {"description": "Consult", "quantity": 1, "unit_price_cents": 5000},
        ],
    )

    assert result.succeeded == 2
    assert result.failed == 2
    assert result.summary == "2 succeeded, 2 failed"

    assert [w["index"] for w in result.warnings] == [1]
    assert result.warnings[0]["available"] == 1
    assert [f["index"] for f in result.failures] == [2]

    assert result.totals.subtotal_cents == 1000 + 5000
    bill.refresh_from_db()
    assert bill.total_cents == 6600

    scarce.refresh_from_db()
    product.refresh_from_db()
    assert scarce.stock_quantity == 1
    assert product.stock_quantity == 8


def test_create_bill_for_visit_bills_each_treatment(visit, treatment):
    bill = BillingService.create_bill_for_visit(visit_id=visit.id)

    assert bill.visit_id == visit.id
    assert bill.patient_id == visit.patient_id

    items = list(bill.items.all())
    assert [i.description for i in items] == [treatment.name]
    assert items[0].product_id is None
    assert bill.total_cents == 11000


def test_create_bill_for_unknown_visit():
    import uuid

    with pytest.raises(NotFoundError):
        BillingService.create_bill_for_visit(visit_id=uuid.uuid4())


def test_create_bill_rejects_visit_of_other_patient(visit, patient_email_only):
    with pytest.raises(ValidationError):
        BillingService.create_bill(patient_id=patient_email_only.id, visit_id=visit.id)


def test_mark_paid_sets_date_and_method(bill, user):
    paid = BillingService.update_payment(
        bill_id=bill.id,
        payment_status=PaymentStatus.PAID,
        payment_method="cash",
        actor_user_id=user.id,
    )

    assert paid.payment_status == PaymentStatus.PAID
    assert paid.payment_method == "cash"
    assert paid.payment_date is not None
    assert AuditEvent.objects.filter(event_code="bill.payment_updated", entity_id=bill.id).exists()


def test_update_payment_rejects_unknown_status(bill):
    with pytest.raises(ValidationError):
        BillingService.update_payment(bill_id=bill.id, payment_status="refunded")


def test_reopening_a_paid_bill_clears_payment_date(bill):
    BillingService.update_payment(bill_id=bill.id, payment_status=PaymentStatus.PAID, payment_method="cash")

    reopened = BillingService.update_payment(bill_id=bill.id, payment_status=PaymentStatus.PENDING)

    assert reopened.payment_status == PaymentStatus.PENDING
    assert reopened.payment_date is None


def test_delete_bill_returns_stock_for_product_lines(bill, product):
    from clinic_core.billing.models import Bill

    BillingService.add_item(bill_id=bill.id, product_id=product.id, quantity=4)
    BillingService.add_item(bill_id=bill.id, description="Consult", quantity=1, unit_price_cents=5000)
    product.refresh_from_db()
    assert product.stock_quantity == 6

    BillingService.delete_bill(bill_id=bill.id)

    product.refresh_from_db()
    assert product.stock_quantity == 10
    assert not Bill.objects.filter(id=bill.id).exists()
    assert not BillItem.objects.filter(bill_id=bill.id).exists()
    assert AuditEvent.objects.filter(event_code="bill.deleted", entity_id=bill.id).exists()


def test_raw_delete_of_bill_with_items_is_refused(bill, product):
    from django.db.models import ProtectedError

    BillingService.add_item(bill_id=bill.id, product_id=product.id, quantity=4)

    with pytest.raises(ProtectedError):
        bill.delete()

    product.refresh_from_db()
    assert product.stock_quantity == 6
    assert BillItem.objects.filter(bill_id=bill.id).count() == 1


def test_delete_unknown_bill_is_not_found():
    import uuid

    with pytest.raises(NotFoundError):
        BillingService.delete_bill(bill_id=uuid.uuid4())


def test_bill_admin_disallows_delete():
    from django.contrib import admin

    from clinic_core.billing.models import Bill

    assert admin.site._registry[Bill].has_delete_permission(request=None) is False
