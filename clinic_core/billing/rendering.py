# clinic_core/billing/rendering.py
"""
Invoice rendering.

Produces a self-contained printable HTML document. Browsers print it to
PDF; there is no server-side rasteriser.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings
from django.template import TemplateDoesNotExist, TemplateSyntaxError
from django.template.loader import render_to_string

from clinic_core.billing.constants import TAX_RATE
from clinic_core.billing.models import Bill
from clinic_core.billing.services import BillItemStore
from clinic_core.common.api.exceptions import UpstreamServiceError
from clinic_core.common.money import format_minor

logger = logging.getLogger(__name__)

INVOICE_TEMPLATE = "billing/invoice.html"


@dataclass(frozen=True)
class RenderedInvoice:
    content: bytes
    content_type: str
    filename: str


class InvoiceRenderer:
    def __init__(self, template_name: str = INVOICE_TEMPLATE):
        self.template_name = template_name

    def build_context(self, bill: Bill) -> dict:
        items = BillItemStore.list_items(bill_id=bill.id)
        return {
            "clinic_name": getattr(settings, "CLINIC_NAME", "ClinicSync"),
            "bill": bill,
            "patient": bill.patient,
            "visit": bill.visit,
            "rows": [
                {
                    "description": item.description,
                    "quantity": item.quantity,
                    "unit_price": format_minor(item.unit_price_cents),
                    "line_total": format_minor(item.line_total_cents),
                }
                for item in items
            ],
            "subtotal": format_minor(bill.subtotal_cents),
            "tax": format_minor(bill.tax_cents),
            "total": format_minor(bill.total_cents),
            "tax_percent": f"{TAX_RATE * 100:.0f}",
        }

    def render(self, bill: Bill) -> RenderedInvoice:
        try:
            html = render_to_string(self.template_name, self.build_context(bill))
        except (TemplateDoesNotExist, TemplateSyntaxError) as exc:
            logger.error("Invoice render failed for bill %s: %s", bill.bill_number, exc)
            raise UpstreamServiceError(f"Failed to render invoice {bill.bill_number}.")

        return RenderedInvoice(
            content=html.encode("utf-8"),
            content_type="text/html; charset=utf-8",
            filename=f"invoice-{bill.bill_number}.html",
        )
