# clinic_core/visits/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from clinic_core.common.api.pagination import paginate
from clinic_core.visits.api.serializers import (
    TreatmentSerializer,
    VisitCreateSerializer,
    VisitSerializer,
    VisitTreatmentInputSerializer,
    VisitTreatmentSerializer,
    VisitUpdateSerializer,
)
from clinic_core.visits.models import Visit
from clinic_core.visits.selectors import active_treatments, get_visit, visits_filtered
from clinic_core.visits.services import TreatmentService, VisitService


def _uuid_or_none(value: str | None, field_name: str) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        raise DRFValidationError({field_name: "Invalid UUID"})


class VisitViewSet(viewsets.GenericViewSet):
    """
    Visits:
    - list/retrieve
    - create (with treatments), partial_update (header fields)
    - treatments: GET catalog / POST catalog entry
    - <id>/treatments: POST add line, <id>/treatments/<line_id>: DELETE
    """
    serializer_class = VisitSerializer
    queryset = Visit.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    @extend_schema(
        tags=["Visits"],
        responses={200: VisitSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        qs = visits_filtered(
            patient_id=_uuid_or_none(request.query_params.get("patient"), "patient"),
            status=request.query_params.get("status"),
        ).prefetch_related("visit_treatments__treatment")
        return paginate(request, qs, VisitSerializer)

    @extend_schema(tags=["Visits"], responses={200: VisitSerializer})
    def retrieve(self, request, pk=None):
        visit = get_visit(visit_id=UUID(str(pk)))
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], request=VisitCreateSerializer, responses={201: VisitSerializer})
    def create(self, request):
        ser = VisitCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        visit = VisitService.create_visit(
            patient_id=data["patient"],
            actor_user_id=getattr(request.user, "id", None),
            treatments=data.get("treatments", []),
            visit_type=data.get("visit_type", "consultation"),
            visit_date=data.get("visit_date"),
            notes=data.get("notes", ""),
        )
        return Response(VisitSerializer(visit).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Visits"],
        request=TreatmentSerializer,
        responses={200: TreatmentSerializer(many=True), 201: TreatmentSerializer},
    )
    @action(detail=False, methods=["get", "post"], url_path="treatments")
    def treatments(self, request):
        if request.method.lower() == "get":
            return Response(TreatmentSerializer(active_treatments(), many=True).data, status=status.HTTP_200_OK)

        ser = TreatmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        treatment = TreatmentService.create(
            name=ser.validated_data["name"],
            price_cents=ser.validated_data.get("price_cents", 0),
            description=ser.validated_data.get("description", ""),
            duration_minutes=ser.validated_data.get("duration_minutes"),
        )
        return Response(TreatmentSerializer(treatment).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Visits"], request=VisitUpdateSerializer, responses={200: VisitSerializer})
    def partial_update(self, request, pk=None):
        visit = get_visit(visit_id=UUID(str(pk)))

        ser = VisitUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        visit = VisitService.update_visit(
            visit=visit,
            actor_user_id=getattr(request.user, "id", None),
            data=ser.validated_data,
        )
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], request=VisitTreatmentInputSerializer, responses={201: VisitTreatmentSerializer})
    @action(detail=True, methods=["post"], url_path="treatments", url_name="add-treatment")
    def add_treatment(self, request, pk=None):
        visit = get_visit(visit_id=UUID(str(pk)))

        ser = VisitTreatmentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        line = VisitService.add_treatment(
            visit=visit,
            treatment_id=ser.validated_data["treatment_id"],
            quantity=ser.validated_data.get("quantity", 1),
            unit_price_cents=ser.validated_data.get("unit_price_cents"),
        )
        return Response(VisitTreatmentSerializer(line).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Visits"], responses={204: None})
    @action(
        detail=True,
        methods=["delete"],
        url_path=r"treatments/(?P<visit_treatment_id>[0-9a-fA-F-]{36})",
        url_name="remove-treatment",
    )
    def remove_treatment(self, request, pk=None, visit_treatment_id=None):
        visit = get_visit(visit_id=UUID(str(pk)))
        VisitService.remove_treatment(visit=visit, visit_treatment_id=UUID(str(visit_treatment_id)))
        return Response(status=status.HTTP_204_NO_CONTENT)
