# clinic_core/billing/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.billing.models import Bill, BillItem, PaymentMethod, PaymentStatus
from clinic_core.notifications.models import NotificationAttempt


class BillItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = BillItem
        fields = [
            "id",
            "bill",
            "product",
            "line_number",
            "description",
            "quantity",
            "unit_price_cents",
            "line_total_cents",
            "created_at",
        ]
        read_only_fields = fields


class BillSerializer(serializers.ModelSerializer):
    items = BillItemSerializer(many=True, read_only=True)

    class Meta:
        model = Bill
        fields = [
            "id",
            "bill_number",
            "patient",
            "visit",
            "subtotal_cents",
            "tax_cents",
            "total_cents",
            "payment_status",
            "payment_method",
            "payment_date",
            "document_url",
            "notes",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BillCreateSerializer(serializers.Serializer):
    patient = serializers.UUIDField(required=False, allow_null=True)
    visit = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BillFromVisitSerializer(serializers.Serializer):
    visit_id = serializers.UUIDField()


class BillTotalUpdateSerializer(serializers.Serializer):
    """
    total_amount is in major units (e.g. "110.00"); it must match the
    total derived from the bill's items.
    """
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)


class BillItemCreateSerializer(serializers.Serializer):
    """
    Product lines: unit_price_cents defaults to the product price and
    description to the product name. Treatment lines need both.
    """
    product_id = serializers.UUIDField(required=False, allow_null=True)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_price_cents = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    update_product_price = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if not attrs.get("product_id"):
            errors = {}
            if not (attrs.get("description") or "").strip():
                errors["description"] = "Required for lines without a product."
            if attrs.get("unit_price_cents") is None:
                errors["unit_price_cents"] = "Required for lines without a product."
            if errors:
                raise serializers.ValidationError(errors)
        return attrs


class BillItemBatchSerializer(serializers.Serializer):
    """
    Malformed lines reject the whole request; stock shortfalls and missing
    products are reported per line in the batch result.
    """
    items = BillItemCreateSerializer(many=True, allow_empty=False)


class PaymentUpdateSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False, allow_blank=True)


class NotificationAttemptSerializer(serializers.ModelSerializer):
    class Meta:
        model = NotificationAttempt
        fields = ["id", "bill", "channel", "recipient", "status", "error_message", "sent_at", "created_at"]
        read_only_fields = fields
