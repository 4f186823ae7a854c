# clinic_core/expenses/services.py
from __future__ import annotations

from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from clinic_core.audit.services import AuditService
from clinic_core.expenses.models import Expense
from clinic_core.expenses.selectors import get_expense


class ExpenseService:
    EDITABLE_FIELDS = {"description", "amount_cents", "category", "expense_date"}

    @staticmethod
    def _check_amount(amount_cents) -> None:
        if amount_cents is None or int(amount_cents) < 0:
            raise ValidationError({"amount_cents": "Amount must be >= 0."})

    @staticmethod
    @transaction.atomic
    def create_expense(
        *,
        description: str,
        amount_cents: int,
        category: str,
        expense_date=None,
        actor_user_id: int | None = None,
    ) -> Expense:
        ExpenseService._check_amount(amount_cents)

        kwargs = {
            "description": description,
            "amount_cents": int(amount_cents),
            "category": category,
            "created_by_id": actor_user_id,
        }
        if expense_date is not None:
            kwargs["expense_date"] = expense_date
        expense = Expense.objects.create(**kwargs)

        AuditService.log(
            event_code="expense.created",
            entity_type="Expense",
            entity_id=expense.id,
            actor_user_id=actor_user_id,
            metadata={"category": category, "amount_cents": expense.amount_cents},
        )
        return expense

    @staticmethod
    @transaction.atomic
    def update_expense(*, expense: Expense, actor_user_id: int | None = None, data: dict) -> Expense:
        updates = {k: v for k, v in (data or {}).items() if k in ExpenseService.EDITABLE_FIELDS}
        if "amount_cents" in updates:
            ExpenseService._check_amount(updates["amount_cents"])

        for k, v in updates.items():
            setattr(expense, k, v)
        expense.save(update_fields=[*updates.keys(), "updated_at"])

        AuditService.log(
            event_code="expense.updated",
            entity_type="Expense",
            entity_id=expense.id,
            actor_user_id=actor_user_id,
            metadata={"updated_fields": sorted(updates.keys())},
        )
        return expense

    @staticmethod
    @transaction.atomic
    def delete_expense(*, expense_id: UUID, actor_user_id: int | None = None) -> None:
        expense = get_expense(expense_id=expense_id)
        expense.delete()

        AuditService.log(
            event_code="expense.deleted",
            entity_type="Expense",
            entity_id=expense_id,
            actor_user_id=actor_user_id,
            metadata={"category": expense.category, "amount_cents": expense.amount_cents},
        )
