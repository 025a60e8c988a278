# clinic_core/pharmacy/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action

from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.permissions import PolicyPermission
from clinic_core.pharmacy.api.serializers import (
    PharmacyItemCreateSerializer,
    PharmacyItemQuerySerializer,
    PharmacyItemSerializer,
    PharmacyItemUpdateSerializer,
    SaleCreateSerializer,
    SaleSerializer,
    SalesReportRowSerializer,
    SalesWindowSerializer,
)
from clinic_core.pharmacy.models import PharmacyItem
from clinic_core.pharmacy.selectors import list_items, list_sales, sales_report
from clinic_core.pharmacy.services import PharmacyService

WINDOW_PARAMS = [
    OpenApiParameter(name="from", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="to", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
]


class PharmacyItemViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "pharmacy"

    serializer_class = PharmacyItemSerializer
    queryset = PharmacyItem.objects.none()

    @extend_schema(
        tags=["Pharmacy"],
        parameters=[
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="low_stock",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Only items with stock <= this threshold.",
            ),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = PharmacyItemQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_items(**q.validated_data), PharmacyItemSerializer, default_limit=20))

    @extend_schema(tags=["Pharmacy"], request=PharmacyItemCreateSerializer, responses={201: PharmacyItemSerializer})
    def create(self, request):
        ser = PharmacyItemCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        item = PharmacyService.create_item(actor=Actor.from_request(request), **ser.validated_data)
        return created(PharmacyItemSerializer(item).data, "Item created")

    @extend_schema(tags=["Pharmacy"], responses={200: PharmacyItemSerializer})
    def retrieve(self, request, pk=None):
        item = assert_exists(PharmacyItem, pk, label="Item")
        return ok(PharmacyItemSerializer(item).data)

    @extend_schema(tags=["Pharmacy"], request=PharmacyItemUpdateSerializer, responses={200: PharmacyItemSerializer})
    def partial_update(self, request, pk=None):
        ser = PharmacyItemUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        item = PharmacyService.update_item(actor=Actor.from_request(request), item_id=pk, data=ser.validated_data)
        return ok(PharmacyItemSerializer(item).data, "Item updated")

    @extend_schema(tags=["Pharmacy"], responses={200: None})
    def destroy(self, request, pk=None):
        PharmacyService.delete_item(actor=Actor.from_request(request), item_id=pk)
        return ok(None, "Item deleted")

    @extend_schema(tags=["Pharmacy"], request=SaleCreateSerializer, responses={201: SaleSerializer})
    @action(detail=False, methods=["post"])
    def sale(self, request):
        ser = SaleCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        sale = PharmacyService.record_sale(actor=Actor.from_request(request), **ser.validated_data)
        return created(SaleSerializer(sale).data, "Sale recorded")

    @extend_schema(
        tags=["Pharmacy"],
        parameters=[
            OpenApiParameter(name="item_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            *WINDOW_PARAMS,
            *PAGE_PARAMS,
        ],
        responses={200: SaleSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def sales(self, request):
        q = SalesWindowSerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_sales(**q.validated_data), SaleSerializer, default_limit=20))

    @extend_schema(tags=["Pharmacy"], parameters=WINDOW_PARAMS, responses={200: SalesReportRowSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="sales-report")
    def sales_report(self, request):
        q = SalesWindowSerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        window = {k: v for k, v in q.validated_data.items() if k in ("date_from", "date_to")}
        return ok(sales_report(**window))
