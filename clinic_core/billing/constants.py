# clinic_core/billing/constants.py
from decimal import Decimal

# Flat clinic tax, applied once on the bill subtotal.
TAX_RATE = Decimal("0.10")

BILL_NUMBER_PREFIX = "BILL-"
