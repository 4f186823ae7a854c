# clinic_core/billing/tests/test_bill_numbers.py
import pytest

from clinic_core.billing import numbering


def test_bill_number_format():
    n = numbering.generate()
    assert n.startswith("BILL-")
    token = n[len("BILL-"):]
    assert len(token) == numbering.TOKEN_LENGTH
    assert token.isalnum() and token.upper() == token


def test_ten_thousand_bill_numbers_are_unique():
    numbers = [numbering.generate() for _ in range(10_000)]
    assert len(set(numbers)) == len(numbers)


def test_base36_largest_token_fits_padding():
    assert len(numbering._base36(2 ** numbering.TOKEN_BITS - 1)) == numbering.TOKEN_LENGTH
    assert numbering._base36(0) == "0"
    assert numbering._base36(35) == "Z"


@pytest.mark.django_db
def test_created_bills_get_distinct_numbers(patient):
    from clinic_core.billing.services import BillingService

    a = BillingService.create_bill(patient_id=patient.id)
    b = BillingService.create_bill(patient_id=patient.id)
    assert a.bill_number != b.bill_number
