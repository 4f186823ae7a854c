# clinic_core/billing/api/views.py
from __future__ import annotations

from uuid import UUID

from django.http import HttpResponse
from django.urls import reverse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from clinic_core.billing.api.serializers import (
    BillCreateSerializer,
    BillFromVisitSerializer,
    BillItemBatchSerializer,
    BillItemCreateSerializer,
    BillItemSerializer,
    BillSerializer,
    BillTotalUpdateSerializer,
    NotificationAttemptSerializer,
    PaymentUpdateSerializer,
)
from clinic_core.billing.models import Bill
from clinic_core.billing.rendering import InvoiceRenderer
from clinic_core.billing.selectors import bills_filtered, get_bill
from clinic_core.billing.services import BillingService, BillItemStore, BillTotalCalculator
from clinic_core.common.api.pagination import paginate
from clinic_core.common.money import to_minor
from clinic_core.notifications.selectors import attempts_for_bill
from clinic_core.notifications.services import NotificationDispatcher


def _uuid_or_none(value: str | None, field_name: str) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        raise DRFValidationError({field_name: "Invalid UUID"})


def _actor_id(request) -> int | None:
    user = getattr(request, "user", None)
    return user.id if user and user.is_authenticated else None


class BillViewSet(viewsets.GenericViewSet):
    """
    Bills:
    - list/retrieve/create (empty bill)
    - from_visit: bill a visit's treatments
    - update (PUT): total sync, destroy: delete and return stock
    - items: GET/POST, items/batch: POST
    - payment, recalculate
    - document (printable invoice), send (notify patient), notifications
    """
    serializer_class = BillSerializer
    queryset = Bill.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    # Injection point for tests / alternative delivery stacks.
    dispatcher_class = NotificationDispatcher
    renderer_class = InvoiceRenderer

    @extend_schema(
        tags=["Billing"],
        responses={200: BillSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="visit", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="payment_status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        qs = bills_filtered(
            patient_id=_uuid_or_none(request.query_params.get("patient"), "patient"),
            visit_id=_uuid_or_none(request.query_params.get("visit"), "visit"),
            payment_status=request.query_params.get("payment_status"),
        ).prefetch_related("items")
        return paginate(request, qs, BillSerializer)

    @extend_schema(tags=["Billing"], responses={200: BillSerializer})
    def retrieve(self, request, pk=None):
        bill = get_bill(bill_id=UUID(str(pk)))
        return Response(BillSerializer(bill).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], request=BillCreateSerializer, responses={201: BillSerializer})
    def create(self, request):
        ser = BillCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        bill = BillingService.create_bill(
            patient_id=ser.validated_data.get("patient"),
            visit_id=ser.validated_data.get("visit"),
            notes=ser.validated_data.get("notes", ""),
            actor_user_id=_actor_id(request),
        )
        return Response(BillSerializer(bill).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Billing"], request=BillTotalUpdateSerializer, responses={200: BillSerializer})
    def update(self, request, pk=None):
        ser = BillTotalUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        total_amount = ser.validated_data.get("total_amount")
        bill = BillingService.sync_total(
            bill_id=UUID(str(pk)),
            total_amount_cents=to_minor(total_amount, "total_amount") if total_amount is not None else None,
        )
        return Response(BillSerializer(get_bill(bill_id=bill.id)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], responses={204: None})
    def destroy(self, request, pk=None):
        BillingService.delete_bill(bill_id=UUID(str(pk)), actor_user_id=_actor_id(request))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Billing"], request=BillFromVisitSerializer, responses={201: BillSerializer})
    @action(detail=False, methods=["post"], url_path="from_visit")
    def from_visit(self, request):
        ser = BillFromVisitSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        bill = BillingService.create_bill_for_visit(
            visit_id=ser.validated_data["visit_id"],
            actor_user_id=_actor_id(request),
        )
        return Response(BillSerializer(get_bill(bill_id=bill.id)).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Billing"], request=None, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["post"], url_path="recalculate")
    def recalculate(self, request, pk=None):
        bill = get_bill(bill_id=UUID(str(pk)))
        totals = BillTotalCalculator.recalculate(bill_id=bill.id)
        return Response(totals.as_dict(), status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Billing"],
        request=BillItemCreateSerializer,
        responses={200: BillItemSerializer(many=True), 201: BillItemSerializer},
    )
    @action(detail=True, methods=["get", "post"], url_path="items")
    def items(self, request, pk=None):
        """
        /billing/bills/<bill_id>/items/
        - GET: list items in line order
        - POST: add one item (reserves stock for product lines)
        """
        bill = get_bill(bill_id=UUID(str(pk)))

        if request.method.lower() == "get":
            items = BillItemStore.list_items(bill_id=bill.id)
            return Response(BillItemSerializer(items, many=True).data, status=status.HTTP_200_OK)

        ser = BillItemCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        item = BillingService.add_item(bill_id=bill.id, actor_user_id=_actor_id(request), **ser.validated_data)
        return Response(BillItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Billing"], request=BillItemBatchSerializer, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["post"], url_path="items/batch")
    def items_batch(self, request, pk=None):
        ser = BillItemBatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = BillingService.add_items(
            bill_id=UUID(str(pk)),
            items=ser.validated_data["items"],
            actor_user_id=_actor_id(request),
        )
        return Response(
            {
                "summary": result.summary,
                "succeeded": result.succeeded,
                "failed": result.failed,
                "created": BillItemSerializer(result.created, many=True).data,
                "warnings": result.warnings,
                "failures": result.failures,
                "totals": result.totals.as_dict() if result.totals else None,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Billing"], request=PaymentUpdateSerializer, responses={200: BillSerializer})
    @action(detail=True, methods=["post"], url_path="payment")
    def payment(self, request, pk=None):
        ser = PaymentUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        bill = BillingService.update_payment(
            bill_id=UUID(str(pk)),
            payment_status=ser.validated_data["payment_status"],
            payment_method=ser.validated_data.get("payment_method") or None,
            actor_user_id=_actor_id(request),
        )
        return Response(BillSerializer(get_bill(bill_id=bill.id)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], responses={(200, "text/html"): OpenApiTypes.STR})
    @action(detail=True, methods=["get"], url_path="document")
    def document(self, request, pk=None):
        bill = get_bill(bill_id=UUID(str(pk)))
        rendered = self.renderer_class().render(bill)

        resp = HttpResponse(rendered.content, content_type=rendered.content_type)
        resp["Content-Disposition"] = f'inline; filename="{rendered.filename}"'
        resp["Cache-Control"] = "no-cache"
        return resp

    @extend_schema(tags=["Billing"], request=None, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["post"], url_path="send")
    def send(self, request, pk=None):
        """
        Renders the invoice, stores its link on the bill, then notifies the
        patient (WhatsApp first, email fallback).
        """
        bill = get_bill(bill_id=UUID(str(pk)))
        # precheck: never send a link to a document that cannot render
        self.renderer_class().render(bill)

        document_url = request.build_absolute_uri(reverse("billing-bills-document", args=[bill.id]))
        BillingService.attach_document(bill_id=bill.id, document_url=document_url)
        bill.refresh_from_db()

        result = self.dispatcher_class().dispatch(bill)
        return Response(
            {"success": result.success, "method": result.method},
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Billing"], responses={200: NotificationAttemptSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="notifications")
    def notifications(self, request, pk=None):
        bill = get_bill(bill_id=UUID(str(pk)))
        return Response(
            NotificationAttemptSerializer(attempts_for_bill(bill_id=bill.id), many=True).data,
            status=status.HTTP_200_OK,
        )


class BillItemView(APIView):
    """
    /billing/items/<item_id>/
    - DELETE: remove the line, return its stock, refresh bill totals
    """

    @extend_schema(tags=["Billing"], responses={200: OpenApiTypes.OBJECT})
    def delete(self, request, item_id: UUID):
        totals = BillingService.remove_item(item_id=UUID(str(item_id)), actor_user_id=_actor_id(request))
        return Response(totals.as_dict(), status=status.HTTP_200_OK)
