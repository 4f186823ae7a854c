# clinic_core/common/api/exceptions.py
from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ObjectDoesNotExist
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Canonical error envelope for ClinicSync.
    Shared by Django views (JsonResponse) and DRF (Response).
    """
    rid = ensure_request_id(request)
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": rid,
        }
    }


# -------------------------------------------------------------------
# Domain errors (raised from services, rendered by api_exception_handler)
# -------------------------------------------------------------------

class NotFoundError(NotFound):
    """
    Referenced bill / item / product / visit / patient does not exist.
    """
    default_detail = "Not found."
    default_code = "not_found"


class InsufficientStockError(APIException):
    """
    Requested quantity exceeds what the product has on hand.
    Carries the available amount so callers can warn-and-skip.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Insufficient stock."
    default_code = "insufficient_stock"

    def __init__(self, *, product_id=None, requested: int = 0, available: int = 0, detail=None):
        self.product_id = product_id
        self.requested = int(requested)
        self.available = int(available)
        message = detail or f"Insufficient stock: requested {self.requested}, available {self.available}."
        super().__init__(detail=message, code=self.default_code)

    def as_dict(self) -> dict[str, Any]:
        return {
            "product_id": str(self.product_id) if self.product_id else None,
            "requested": self.requested,
            "available": self.available,
            "message": str(self.detail),
        }


class UpstreamServiceError(APIException):
    """
    Persistence, rendering or messaging collaborator failed.
    """
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service failed."
    default_code = "upstream_error"


class NoContactMethodError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "No contact method available for patient."
    default_code = "no_contact_method"


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    # Model.DoesNotExist from selectors -> 404 envelope
    if isinstance(exc, ObjectDoesNotExist):
        exc = NotFoundError(str(exc) or None)

    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled API error", exc_info=exc)
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Unexpected server error.",
                details=None,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)

    data = response.data

    # Message + details rules:
    # 1) {"detail": "..."} only -> message=detail, details=None
    # 2) {"detail": "...", ...} -> message=detail, details={...without detail}
    # 3) otherwise -> message="Request failed.", details=data
    message = "Request failed."
    details = data

    if isinstance(data, dict) and "detail" in data:
        message = str(data.get("detail"))
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None

    if isinstance(exc, InsufficientStockError):
        details = exc.as_dict()

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
