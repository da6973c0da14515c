"""Recurso: vendedor (`/seller/*`): catálogo propio, pedidos, panel y tienda."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from adapters.resources.base import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    ResourceApi,
    page_query,
    path_segment,
    to_payload,
)
from core.domain.keys import QueryPairs, require_identifier, serialize_params
from core.domain.models import (
    BankDetails,
    DashboardStats,
    MessagePayload,
    Order,
    PaginatedResponse,
    Product,
    ProductForm,
    ResponseEnvelope,
    SalesChart,
    Shop,
    TopProduct,
    UploadResult,
)
from core.interfaces.transport import RequestDescriptor


def status_query(status: str | None = None, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> QueryPairs:
    return page_query(page, limit, [("status", status)])


def period_query(period: str = "30d") -> QueryPairs:
    return serialize_params([("period", period)])


def top_query(limit: int = 10) -> QueryPairs:
    return serialize_params([("limit", limit)])


class SellerApi(ResourceApi):
    # ---------- productos ----------
    async def get_products(
        self,
        status: str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[PaginatedResponse[Product]]:
        return await self._get("/seller/products", PaginatedResponse[Product], status_query(status, page, limit))

    async def create_product(self, form: ProductForm | Mapping[str, Any]) -> ResponseEnvelope[Product]:
        form = ProductForm.model_validate(form) if isinstance(form, Mapping) else form
        return await self._write("POST", "/seller/products", Product, form.to_wire())

    async def update_product(self, product_id: str, data: ProductForm | Mapping[str, Any]) -> ResponseEnvelope[Product]:
        path = f"/seller/products/{path_segment('product_id', product_id)}"
        return await self._write("PUT", path, Product, to_payload(data, partial=True, model=ProductForm))

    async def delete_product(self, product_id: str) -> ResponseEnvelope[MessagePayload]:
        path = f"/seller/products/{path_segment('product_id', product_id)}"
        return await self._write("DELETE", path, MessagePayload)

    # ---------- pedidos ----------
    async def get_orders(
        self,
        status: str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[PaginatedResponse[Order]]:
        return await self._get("/seller/orders", PaginatedResponse[Order], status_query(status, page, limit))

    async def update_order_status(
        self,
        order_id: str,
        status: str,
        tracking_number: str | None = None,
    ) -> ResponseEnvelope[Order]:
        path = f"/seller/orders/{path_segment('order_id', order_id)}"
        body = to_payload({"status": require_identifier("status", status), "trackingNumber": tracking_number})
        return await self._write("PUT", path, Order, body)

    # ---------- panel ----------
    async def get_dashboard_stats(self) -> ResponseEnvelope[DashboardStats]:
        return await self._get("/seller/dashboard/stats", DashboardStats)

    async def get_sales_chart(self, period: str = "30d") -> ResponseEnvelope[list[SalesChart]]:
        return await self._get("/seller/dashboard/sales", list[SalesChart], period_query(period))

    async def get_top_products(self, limit: int = 10) -> ResponseEnvelope[list[TopProduct]]:
        return await self._get("/seller/dashboard/top-products", list[TopProduct], top_query(limit))

    # ---------- tienda y verificación ----------
    async def update_shop(self, data: Shop | Mapping[str, Any]) -> ResponseEnvelope[Shop]:
        return await self._write("PUT", "/seller/shop", Shop, to_payload(data, partial=True, model=Shop))

    async def upload_document(
        self,
        content: bytes,
        filename: str,
        doc_type: str,
        *,
        mime: str = "application/octet-stream",
    ) -> ResponseEnvelope[UploadResult]:
        """Sube un documento de verificación (multipart: `file` + `type`)."""

        descriptor = RequestDescriptor(
            "/seller/documents",
            "POST",
            files=(("file", (require_identifier("filename", filename), content, mime)),),
            form=(("type", require_identifier("doc_type", doc_type)),),
        )
        return await self._sender.send(descriptor, UploadResult)

    async def update_bank_details(self, data: BankDetails | Mapping[str, Any]) -> ResponseEnvelope[BankDetails]:
        details = BankDetails.model_validate(data) if isinstance(data, Mapping) else data
        return await self._write("PUT", "/seller/bank-details", BankDetails, details.to_wire())
