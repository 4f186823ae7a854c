# clinic_core/visits/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.visits.models import Treatment, Visit, VisitStatus, VisitTreatment


class TreatmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Treatment
        fields = [
            "id",
            "name",
            "description",
            "price_cents",
            "duration_minutes",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class VisitTreatmentSerializer(serializers.ModelSerializer):
    treatment_name = serializers.CharField(source="treatment.name", read_only=True)

    class Meta:
        model = VisitTreatment
        fields = ["id", "treatment", "treatment_name", "quantity", "unit_price_cents", "notes"]
        read_only_fields = fields


class VisitSerializer(serializers.ModelSerializer):
    visit_treatments = VisitTreatmentSerializer(many=True, read_only=True)

    class Meta:
        model = Visit
        fields = [
            "id",
            "patient",
            "visit_date",
            "visit_type",
            "status",
            "notes",
            "visit_treatments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class VisitTreatmentInputSerializer(serializers.Serializer):
    treatment_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_price_cents = serializers.IntegerField(min_value=0, required=False)


class VisitCreateSerializer(serializers.Serializer):
    patient = serializers.UUIDField()
    visit_type = serializers.CharField(max_length=64, required=False, default="consultation")
    visit_date = serializers.DateTimeField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    treatments = VisitTreatmentInputSerializer(many=True, required=False, default=list)


class VisitUpdateSerializer(serializers.Serializer):
    """
    Partial update contract (PATCH). Treatment lines have their own endpoints.
    """
    visit_type = serializers.CharField(max_length=64, required=False)
    status = serializers.ChoiceField(choices=VisitStatus.choices, required=False)
    visit_date = serializers.DateTimeField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs
