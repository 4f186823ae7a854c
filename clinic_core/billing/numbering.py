# clinic_core/billing/numbering.py
"""
Bill number generation.

Format: ``BILL-`` followed by a 128-bit random token in base36, left padded
to 25 characters. Random tokens need no coordination between concurrent
requests; the unique constraint on Bill.bill_number is the backstop.
"""
from __future__ import annotations

import secrets
import string

from clinic_core.billing.constants import BILL_NUMBER_PREFIX

_ALPHABET = string.digits + string.ascii_uppercase
TOKEN_BITS = 128
# ceil(128 * log(2) / log(36))
TOKEN_LENGTH = 25


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, rem = divmod(n, 36)
        out.append(_ALPHABET[rem])
    return "".join(reversed(out))


def generate() -> str:
    token = _base36(secrets.randbits(TOKEN_BITS)).rjust(TOKEN_LENGTH, "0")
    return f"{BILL_NUMBER_PREFIX}{token}"
