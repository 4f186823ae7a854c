# clinic_core/expenses/selectors.py
from __future__ import annotations

from datetime import date
from uuid import UUID

from django.db.models import QuerySet, Sum

from clinic_core.common.api.exceptions import NotFoundError
from clinic_core.expenses.models import Expense


def get_expense(*, expense_id: UUID) -> Expense:
    try:
        return Expense.objects.get(id=expense_id)
    except Expense.DoesNotExist:
        raise NotFoundError(f"Expense {expense_id} not found.")


def expenses_qs() -> QuerySet[Expense]:
    return Expense.objects.all().order_by("-expense_date", "-created_at")


def totals_by_category(
    qs: QuerySet[Expense] | None = None,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[dict]:
    """
    [{"category", "total_cents"}] largest first. Both dates are inclusive.
    """
    qs = expenses_qs() if qs is None else qs
    if start_date:
        qs = qs.filter(expense_date__gte=start_date)
    if end_date:
        qs = qs.filter(expense_date__lte=end_date)

    rows = qs.order_by().values("category").annotate(total_cents=Sum("amount_cents")).order_by("-total_cents", "category")
    return [{"category": r["category"], "total_cents": r["total_cents"]} for r in rows]
