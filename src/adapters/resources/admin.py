"""Recurso: administración (`/admin/*`): usuarios, moderación y métricas."""

from __future__ import annotations

from typing import Any

from adapters.resources.base import DEFAULT_LIMIT, DEFAULT_PAGE, ResourceApi, page_query, path_segment
from adapters.resources.seller import period_query, top_query
from core.domain.keys import QueryPairs, require_identifier
from core.domain.models import (
    DashboardStats,
    PaginatedResponse,
    Product,
    ResponseEnvelope,
    Role,
    SalesChart,
    TopProduct,
    User,
)


def users_query(role: Role | str | None = None, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> QueryPairs:
    return page_query(page, limit, [("role", role)])


class AdminApi(ResourceApi):
    # ---------- usuarios ----------
    async def get_users(
        self,
        role: Role | str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[PaginatedResponse[User]]:
        return await self._get("/admin/users", PaginatedResponse[User], users_query(role, page, limit))

    async def update_user_role(self, user_id: str, role: Role | str) -> ResponseEnvelope[User]:
        path = f"/admin/users/{path_segment('user_id', user_id)}/role"
        return await self._write("PUT", path, User, {"role": Role(role).value})

    # ---------- moderación de productos ----------
    async def get_pending_products(
        self,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[PaginatedResponse[Product]]:
        return await self._get("/admin/products/pending", PaginatedResponse[Product], page_query(page, limit))

    async def approve_product(self, product_id: str) -> ResponseEnvelope[Product]:
        return await self._write("POST", f"/admin/products/{path_segment('product_id', product_id)}/approve", Product)

    async def reject_product(self, product_id: str, reason: str) -> ResponseEnvelope[Product]:
        path = f"/admin/products/{path_segment('product_id', product_id)}/reject"
        return await self._write("POST", path, Product, {"reason": require_identifier("reason", reason)})

    # ---------- moderación de vendedores ----------
    async def get_pending_sellers(
        self,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[PaginatedResponse[User]]:
        return await self._get("/admin/sellers/pending", PaginatedResponse[User], page_query(page, limit))

    async def approve_seller(self, seller_id: str) -> ResponseEnvelope[User]:
        return await self._write("POST", f"/admin/sellers/{path_segment('seller_id', seller_id)}/approve", User)

    async def reject_seller(self, seller_id: str, reason: str) -> ResponseEnvelope[User]:
        path = f"/admin/sellers/{path_segment('seller_id', seller_id)}/reject"
        return await self._write("POST", path, User, {"reason": require_identifier("reason", reason)})

    # ---------- métricas ----------
    async def get_dashboard_stats(self) -> ResponseEnvelope[DashboardStats]:
        return await self._get("/admin/dashboard/stats", DashboardStats)

    async def get_sales_chart(self, period: str = "30d") -> ResponseEnvelope[list[SalesChart]]:
        return await self._get("/admin/dashboard/sales", list[SalesChart], period_query(period))

    async def get_top_products(self, limit: int = 10) -> ResponseEnvelope[list[TopProduct]]:
        return await self._get("/admin/dashboard/top-products", list[TopProduct], top_query(limit))

    async def get_analytics(self) -> ResponseEnvelope[dict[str, Any]]:
        return await self._get("/admin/analytics", dict[str, Any])
