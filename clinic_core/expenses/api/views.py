# clinic_core/expenses/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from clinic_core.common.api.pagination import paginate
from clinic_core.expenses.api.filters import ExpenseFilter
from clinic_core.expenses.api.serializers import (
    CategoryTotalSerializer,
    ExpenseCreateSerializer,
    ExpenseSerializer,
    ExpenseUpdateSerializer,
)
from clinic_core.expenses.models import Expense
from clinic_core.expenses.selectors import expenses_qs, get_expense, totals_by_category
from clinic_core.expenses.services import ExpenseService


class ExpenseViewSet(viewsets.GenericViewSet):
    """
    Expenses:
    - list (category / start_date / end_date filters), create, retrieve
    - partial_update, destroy
    - by_category: summed amounts per category for the same filters
    """
    serializer_class = ExpenseSerializer
    queryset = Expense.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"
    filterset_class = ExpenseFilter
    search_fields = ["description", "category"]
    ordering_fields = ["expense_date", "amount_cents", "created_at"]

    @extend_schema(tags=["Expenses"], responses={200: ExpenseSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(expenses_qs())
        return paginate(request, qs, ExpenseSerializer)

    @extend_schema(tags=["Expenses"], request=ExpenseCreateSerializer, responses={201: ExpenseSerializer})
    def create(self, request):
        ser = ExpenseCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        expense = ExpenseService.create_expense(
            actor_user_id=getattr(request.user, "id", None),
            **ser.validated_data,
        )
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Expenses"], responses={200: ExpenseSerializer})
    def retrieve(self, request, pk=None):
        expense = get_expense(expense_id=UUID(str(pk)))
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Expenses"], request=ExpenseUpdateSerializer, responses={200: ExpenseSerializer})
    def partial_update(self, request, pk=None):
        expense = get_expense(expense_id=UUID(str(pk)))

        ser = ExpenseUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        expense = ExpenseService.update_expense(
            expense=expense,
            actor_user_id=getattr(request.user, "id", None),
            data=ser.validated_data,
        )
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Expenses"], responses={204: None})
    def destroy(self, request, pk=None):
        ExpenseService.delete_expense(expense_id=UUID(str(pk)), actor_user_id=getattr(request.user, "id", None))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Expenses"],
        responses={200: CategoryTotalSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="start_date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="end_date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    @action(detail=False, methods=["get"], url_path="by_category")
    def by_category(self, request):
        rows = totals_by_category(self.filter_queryset(expenses_qs()))
        return Response(CategoryTotalSerializer(rows, many=True).data, status=status.HTTP_200_OK)
