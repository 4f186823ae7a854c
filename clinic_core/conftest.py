# clinic_core/conftest.py
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from clinic_core.inventory.models import Product
from clinic_core.patients.models import Patient
from clinic_core.visits.models import Treatment, Visit, VisitTreatment


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(
        username="testuser",
        password="testpass",
        is_active=True,
    )


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def patient(db):
    return Patient.objects.create(
        first_name="Asha",
        last_name="Verma",
        phone="+15551234567",
        email="asha@example.com",
    )


@pytest.fixture
def patient_email_only(db):
    return Patient.objects.create(first_name="Emil", last_name="Only", email="emil@example.com")


@pytest.fixture
def patient_no_contact(db):
    return Patient.objects.create(first_name="Nobody", last_name="Reachable")


@pytest.fixture
def product(db):
    """Priced 5.00 with ten on hand."""
    return Product.objects.create(
        name="Gauze Pack",
        category="consumables",
        unit_price_cents=500,
        stock_quantity=10,
        min_stock_level=2,
    )


@pytest.fixture
def treatment(db):
    return Treatment.objects.create(name="Consultation", price_cents=10000)


@pytest.fixture
def visit(db, patient, treatment):
    v = Visit.objects.create(patient=patient, visit_type="consultation")
    VisitTreatment.objects.create(visit=v, treatment=treatment, quantity=1, unit_price_cents=treatment.price_cents)
    return v


@pytest.fixture
def bill(db, patient):
    from clinic_core.billing.services import BillingService

    return BillingService.create_bill(patient_id=patient.id)
