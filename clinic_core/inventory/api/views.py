# clinic_core/inventory/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from clinic_core.common.api.pagination import paginate
from clinic_core.inventory.api.filters import ProductFilter
from clinic_core.inventory.api.serializers import (
    ProductCreateSerializer,
    ProductSerializer,
    ProductUpdateSerializer,
    StockAdjustSerializer,
    StockTransactionSerializer,
)
from clinic_core.inventory.models import Product
from clinic_core.inventory.selectors import (
    get_product,
    low_stock_products,
    products_qs,
    stock_transactions_for,
)
from clinic_core.inventory.services import InventoryAdjuster, ProductService


class ProductViewSet(viewsets.GenericViewSet):
    """
    Inventory products:
    - list (filter: category, is_active, low_stock; search: name)
    - create / retrieve / partial_update
    - adjust: manual stock correction
    - low_stock / transactions
    """
    serializer_class = ProductSerializer
    queryset = Product.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"
    filterset_class = ProductFilter
    search_fields = ["name", "category"]
    ordering_fields = ["name", "stock_quantity", "unit_price_cents", "created_at"]

    @extend_schema(tags=["Inventory"], responses={200: ProductSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(products_qs())
        return paginate(request, qs, ProductSerializer)

    @extend_schema(tags=["Inventory"], request=ProductCreateSerializer, responses={201: ProductSerializer})
    def create(self, request):
        ser = ProductCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        product = ProductService.create_product(
            actor_user_id=getattr(request.user, "id", None),
            **ser.validated_data,
        )
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Inventory"], responses={200: ProductSerializer})
    def retrieve(self, request, pk=None):
        product = get_product(product_id=UUID(str(pk)))
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Inventory"], request=ProductUpdateSerializer, responses={200: ProductSerializer})
    def partial_update(self, request, pk=None):
        product = get_product(product_id=UUID(str(pk)))

        ser = ProductUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        product = ProductService.update_product(product=product, data=ser.validated_data)
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Inventory"], request=StockAdjustSerializer, responses={200: ProductSerializer})
    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        ser = StockAdjustSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        product = InventoryAdjuster.adjust_stock(
            product_id=UUID(str(pk)),
            quantity_change=ser.validated_data["quantity_change"],
            reason=ser.validated_data.get("reason", ""),
            actor_user_id=getattr(request.user, "id", None),
        )
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Inventory"], responses={200: ProductSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="low_stock")
    def low_stock(self, request):
        return Response(ProductSerializer(low_stock_products(), many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Inventory"], responses={200: StockTransactionSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="transactions")
    def transactions(self, request, pk=None):
        product = get_product(product_id=UUID(str(pk)))
        return paginate(request, stock_transactions_for(product_id=product.id), StockTransactionSerializer)
