# clinic_core/audit/tests/test_audit_trail.py
import pytest

from clinic_core.audit.models import AuditEvent
from clinic_core.billing.services import BillingService

pytestmark = pytest.mark.django_db


def test_bill_lifecycle_is_audited(patient, user):
    bill = BillingService.create_bill(patient_id=patient.id, actor_user_id=user.id)
    item = BillingService.add_item(
        bill_id=bill.id,
        description="Consult",
        quantity=1,
        unit_price_cents=1000,
        actor_user_id=user.id,
    )
    BillingService.remove_item(item_id=item.id, actor_user_id=user.id)

    codes = sorted(AuditEvent.objects.filter(entity_id=bill.id).values_list("event_code", flat=True))
    assert codes == ["bill.created", "bill.item_added", "bill.item_removed"]

    created = AuditEvent.objects.get(entity_id=bill.id, event_code="bill.created")
    assert created.actor_user_id == user.id
    assert created.metadata == {"bill_number": bill.bill_number}


def test_failed_add_leaves_no_audit_event(bill):
    from clinic_core.common.api.exceptions import InsufficientStockError
    from clinic_core.inventory.models import Product

    empty = Product.objects.create(name="Out of stock", unit_price_cents=100, stock_quantity=0)

    with pytest.raises(InsufficientStockError):
        BillingService.add_item(bill_id=bill.id, product_id=empty.id, quantity=1)

    assert not AuditEvent.objects.filter(entity_id=bill.id, event_code="bill.item_added").exists()
