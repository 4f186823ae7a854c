# clinic_core/patients/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from clinic_core.common.api.pagination import paginate
from clinic_core.patients.api.serializers import (
    PatientCreateSerializer,
    PatientSerializer,
    PatientUpdateSerializer,
)
from clinic_core.patients.models import Patient
from clinic_core.patients.selectors import get_patient, search_patients
from clinic_core.patients.services import PatientService


def _actor_id(request) -> int | None:
    user = getattr(request, "user", None)
    return user.id if user and user.is_authenticated else None


class PatientViewSet(viewsets.ViewSet):
    serializer_class = PatientSerializer
    queryset = Patient.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    @extend_schema(
        tags=["Patients"],
        responses={200: PatientSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        qs = search_patients(q=request.query_params.get("q"))
        return paginate(request, qs, PatientSerializer)

    @extend_schema(tags=["Patients"], request=PatientCreateSerializer, responses={201: PatientSerializer})
    def create(self, request):
        ser = PatientCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        patient = PatientService.create_patient(actor_user_id=_actor_id(request), **ser.validated_data)
        return Response(PatientSerializer(patient).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        patient = get_patient(patient_id=UUID(str(pk)))
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], request=PatientUpdateSerializer, responses={200: PatientSerializer})
    def partial_update(self, request, pk=None):
        patient = get_patient(patient_id=UUID(str(pk)))

        ser = PatientUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        patient = PatientService.update_patient(
            patient=patient,
            actor_user_id=_actor_id(request),
            data=ser.validated_data,
        )
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)
