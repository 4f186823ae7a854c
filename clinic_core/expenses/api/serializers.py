# clinic_core/expenses/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.expenses.models import Expense


class ExpenseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Expense
        fields = [
            "id",
            "description",
            "amount_cents",
            "category",
            "expense_date",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ExpenseCreateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    amount_cents = serializers.IntegerField(min_value=0)
    category = serializers.CharField(max_length=64)
    expense_date = serializers.DateField(required=False)


class ExpenseUpdateSerializer(serializers.Serializer):
    """
    Partial update contract (PATCH).
    """
    description = serializers.CharField(max_length=255, required=False)
    amount_cents = serializers.IntegerField(min_value=0, required=False)
    category = serializers.CharField(max_length=64, required=False)
    expense_date = serializers.DateField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class CategoryTotalSerializer(serializers.Serializer):
    category = serializers.CharField()
    total_cents = serializers.IntegerField()
