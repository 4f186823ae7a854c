# clinic_core/inventory/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.inventory.models import Product, StockTransaction


class ProductSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "category",
            "unit_price_cents",
            "stock_quantity",
            "min_stock_level",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    category = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    unit_price_cents = serializers.IntegerField(min_value=0, default=0)
    stock_quantity = serializers.IntegerField(min_value=0, default=0)
    min_stock_level = serializers.IntegerField(min_value=0, default=0)


class ProductUpdateSerializer(serializers.Serializer):
    """
    Partial update contract (PATCH). stock_quantity is deliberately absent:
    use the adjust action.
    """
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(max_length=64, required=False, allow_blank=True)
    unit_price_cents = serializers.IntegerField(min_value=0, required=False)
    min_stock_level = serializers.IntegerField(min_value=0, required=False)
    is_active = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class StockAdjustSerializer(serializers.Serializer):
    quantity_change = serializers.IntegerField()
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class StockTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockTransaction
        fields = [
            "id",
            "product",
            "transaction_type",
            "quantity",
            "reason",
            "reference_number",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields
