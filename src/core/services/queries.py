"""Cached reads and coordinated writes, one per marketplace use case.

Each read builds its `CacheKey` from the same query serialization the
resource client sends, then goes through the `CacheStore` (coalescing and
staleness windows). Each write goes through the `MutationCoordinator` with
its row from `MUTATION_TABLE`.

Reads that need an identifier or a search text raise
`InvalidIdentifierError` instead of issuing a request.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Awaitable, Callable

from adapters.resources import ResourceClients
from adapters.resources.admin import users_query
from adapters.resources.base import DEFAULT_LIMIT, DEFAULT_PAGE, page_query
from adapters.resources.buyer import orders_query
from adapters.resources.products import (
    FiltersInput,
    SortInput,
    coerce_filters,
    coerce_sort,
    products_query,
    search_query,
)
from adapters.resources.seller import period_query, status_query, top_query
from core.domain.keys import CacheKey, QueryPairs, encode_query, require_identifier
from core.domain.models import (
    Address,
    BankDetails,
    CheckoutForm,
    ProductForm,
    ResponseEnvelope,
    Role,
    Shop,
)
from core.services.cache_store import CacheStore
from core.services.mutations import MutationCoordinator, describe

MINUTE = 60.0

# Windows per resource; anything not listed uses the store default.
STALE_WINDOWS: dict[str, float] = {
    "products": 5 * MINUTE,
    "products.featured": 10 * MINUTE,
    "products.categories": 30 * MINUTE,
    "products.search": 2 * MINUTE,
    "seller.dashboard.stats": 5 * MINUTE,
    "seller.dashboard.sales": 10 * MINUTE,
    "seller.dashboard.top-products": 10 * MINUTE,
    "admin.dashboard.stats": 5 * MINUTE,
    "admin.dashboard.sales": 10 * MINUTE,
    "admin.dashboard.top-products": 10 * MINUTE,
    "admin.analytics": 15 * MINUTE,
}


def _key(resource: str, query: QueryPairs = ()) -> CacheKey:
    return CacheKey(resource, encode_query(query))


def _id_key(resource: str, name: str, value: Any) -> CacheKey:
    return CacheKey.of(resource, [("id", require_identifier(name, value))])


class MarketplaceQueries:
    def __init__(self, cache: CacheStore, coordinator: MutationCoordinator, apis: ResourceClients) -> None:
        self._cache = cache
        self._coordinator = coordinator
        self._apis = apis

    @property
    def cache(self) -> CacheStore:
        return self._cache

    async def _read(self, key: CacheKey, loader: Callable[[], Awaitable[ResponseEnvelope[Any]]]) -> ResponseEnvelope[Any]:
        return await self._cache.read(key, loader, STALE_WINDOWS.get(key.resource))

    async def _mutate(
        self,
        name: str,
        call: Callable[[], Awaitable[ResponseEnvelope[Any]]],
        **identifiers: Any,
    ) -> ResponseEnvelope[Any]:
        return await self._coordinator.mutate(describe(name, **identifiers), call)

    # ---------- catalog ----------

    async def products(
        self,
        filters: FiltersInput = None,
        sort: SortInput = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[Any]:
        f, s = coerce_filters(filters), coerce_sort(sort)
        key = _key("products", products_query(f, s, page, limit))
        return await self._read(key, lambda: self._apis.products.get_all(f, s, page, limit))

    async def product(self, product_id: str) -> ResponseEnvelope[Any]:
        key = _id_key("product", "product_id", product_id)
        return await self._read(key, lambda: self._apis.products.get_by_id(product_id))

    async def featured_products(self) -> ResponseEnvelope[Any]:
        return await self._read(_key("products.featured"), self._apis.products.get_featured)

    async def product_categories(self) -> ResponseEnvelope[Any]:
        return await self._read(_key("products.categories"), self._apis.products.get_categories)

    async def products_by_category(
        self,
        category: str,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[Any]:
        name = require_identifier("category", category)
        key = _key("products.category", page_query(page, limit, [("category", name)]))
        return await self._read(key, lambda: self._apis.products.get_by_category(name, page, limit))

    async def search_products(
        self,
        query: str,
        filters: FiltersInput = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[Any]:
        f = coerce_filters(filters)
        key = _key("products.search", search_query(query, f, page, limit))
        return await self._read(key, lambda: self._apis.products.search(query, f, page, limit))

    # ---------- seller ----------

    async def seller_products(
        self,
        status: str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[Any]:
        key = _key("seller.products", status_query(status, page, limit))
        return await self._read(key, lambda: self._apis.seller.get_products(status, page, limit))

    async def seller_orders(
        self,
        status: str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[Any]:
        key = _key("seller.orders", status_query(status, page, limit))
        return await self._read(key, lambda: self._apis.seller.get_orders(status, page, limit))

    async def seller_dashboard_stats(self) -> ResponseEnvelope[Any]:
        return await self._read(_key("seller.dashboard.stats"), self._apis.seller.get_dashboard_stats)

    async def seller_sales_chart(self, period: str = "30d") -> ResponseEnvelope[Any]:
        key = _key("seller.dashboard.sales", period_query(period))
        return await self._read(key, lambda: self._apis.seller.get_sales_chart(period))

    async def seller_top_products(self, limit: int = 10) -> ResponseEnvelope[Any]:
        key = _key("seller.dashboard.top-products", top_query(limit))
        return await self._read(key, lambda: self._apis.seller.get_top_products(limit))

    async def create_product(self, form: ProductForm | Mapping[str, Any]) -> ResponseEnvelope[Any]:
        return await self._mutate("seller.create_product", lambda: self._apis.seller.create_product(form))

    async def update_product(self, product_id: str, data: ProductForm | Mapping[str, Any]) -> ResponseEnvelope[Any]:
        return await self._mutate(
            "seller.update_product",
            lambda: self._apis.seller.update_product(product_id, data),
            product_id=product_id,
        )

    async def delete_product(self, product_id: str) -> ResponseEnvelope[Any]:
        return await self._mutate(
            "seller.delete_product",
            lambda: self._apis.seller.delete_product(product_id),
            product_id=product_id,
        )

    async def update_order_status(
        self,
        order_id: str,
        status: str,
        tracking_number: str | None = None,
    ) -> ResponseEnvelope[Any]:
        return await self._mutate(
            "seller.update_order_status",
            lambda: self._apis.seller.update_order_status(order_id, status, tracking_number),
            order_id=order_id,
        )

    async def update_shop(self, data: Shop | Mapping[str, Any]) -> ResponseEnvelope[Any]:
        return await self._mutate("seller.update_shop", lambda: self._apis.seller.update_shop(data))

    async def upload_document(
        self,
        content: bytes,
        filename: str,
        doc_type: str,
        *,
        mime: str = "application/octet-stream",
    ) -> ResponseEnvelope[Any]:
        return await self._mutate(
            "seller.upload_document",
            lambda: self._apis.seller.upload_document(content, filename, doc_type, mime=mime),
        )

    async def update_bank_details(self, data: BankDetails | Mapping[str, Any]) -> ResponseEnvelope[Any]:
        return await self._mutate("seller.update_bank_details", lambda: self._apis.seller.update_bank_details(data))

    # ---------- buyer ----------

    async def cart(self) -> ResponseEnvelope[Any]:
        return await self._read(_key("buyer.cart"), self._apis.buyer.get_cart)

    async def buyer_orders(
        self,
        status: str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[Any]:
        key = _key("buyer.orders", orders_query(status, page, limit))
        return await self._read(key, lambda: self._apis.buyer.get_orders(status, page, limit))

    async def order(self, order_id: str) -> ResponseEnvelope[Any]:
        key = _id_key("buyer.order", "order_id", order_id)
        return await self._read(key, lambda: self._apis.buyer.get_order_by_id(order_id))

    async def addresses(self) -> ResponseEnvelope[Any]:
        return await self._read(_key("buyer.addresses"), self._apis.buyer.get_addresses)

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> ResponseEnvelope[Any]:
        return await self._mutate("buyer.add_to_cart", lambda: self._apis.buyer.add_to_cart(product_id, quantity))

    async def update_cart_item(self, item_id: str, quantity: int) -> ResponseEnvelope[Any]:
        return await self._mutate("buyer.update_cart_item", lambda: self._apis.buyer.update_cart_item(item_id, quantity))

    async def remove_from_cart(self, item_id: str) -> ResponseEnvelope[Any]:
        return await self._mutate("buyer.remove_from_cart", lambda: self._apis.buyer.remove_from_cart(item_id))

    async def clear_cart(self) -> ResponseEnvelope[Any]:
        return await self._mutate("buyer.clear_cart", self._apis.buyer.clear_cart)

    async def create_order(self, form: CheckoutForm | Mapping[str, Any]) -> ResponseEnvelope[Any]:
        return await self._mutate("buyer.create_order", lambda: self._apis.buyer.create_order(form))

    async def cancel_order(self, order_id: str, reason: str | None = None) -> ResponseEnvelope[Any]:
        return await self._mutate(
            "buyer.cancel_order",
            lambda: self._apis.buyer.cancel_order(order_id, reason),
            order_id=order_id,
        )

    async def add_review(
        self,
        product_id: str,
        rating: int,
        comment: str | None = None,
        images: list[str] | None = None,
    ) -> ResponseEnvelope[Any]:
        return await self._mutate(
            "buyer.add_review",
            lambda: self._apis.buyer.add_review(product_id, rating, comment, images),
            product_id=product_id,
        )

    async def add_address(self, address: Address | Mapping[str, Any]) -> ResponseEnvelope[Any]:
        return await self._mutate("buyer.add_address", lambda: self._apis.buyer.add_address(address))

    async def update_address(self, address_id: str, data: Mapping[str, Any]) -> ResponseEnvelope[Any]:
        return await self._mutate("buyer.update_address", lambda: self._apis.buyer.update_address(address_id, data))

    async def delete_address(self, address_id: str) -> ResponseEnvelope[Any]:
        return await self._mutate("buyer.delete_address", lambda: self._apis.buyer.delete_address(address_id))

    # ---------- admin ----------

    async def admin_users(
        self,
        role: Role | str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[Any]:
        key = _key("admin.users", users_query(role, page, limit))
        return await self._read(key, lambda: self._apis.admin.get_users(role, page, limit))

    async def pending_products(self, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> ResponseEnvelope[Any]:
        key = _key("admin.products.pending", page_query(page, limit))
        return await self._read(key, lambda: self._apis.admin.get_pending_products(page, limit))

    async def pending_sellers(self, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> ResponseEnvelope[Any]:
        key = _key("admin.sellers.pending", page_query(page, limit))
        return await self._read(key, lambda: self._apis.admin.get_pending_sellers(page, limit))

    async def admin_dashboard_stats(self) -> ResponseEnvelope[Any]:
        return await self._read(_key("admin.dashboard.stats"), self._apis.admin.get_dashboard_stats)

    async def admin_sales_chart(self, period: str = "30d") -> ResponseEnvelope[Any]:
        key = _key("admin.dashboard.sales", period_query(period))
        return await self._read(key, lambda: self._apis.admin.get_sales_chart(period))

    async def admin_top_products(self, limit: int = 10) -> ResponseEnvelope[Any]:
        key = _key("admin.dashboard.top-products", top_query(limit))
        return await self._read(key, lambda: self._apis.admin.get_top_products(limit))

    async def admin_analytics(self) -> ResponseEnvelope[Any]:
        return await self._read(_key("admin.analytics"), self._apis.admin.get_analytics)

    async def update_user_role(self, user_id: str, role: Role | str) -> ResponseEnvelope[Any]:
        return await self._mutate("admin.update_user_role", lambda: self._apis.admin.update_user_role(user_id, role))

    async def approve_product(self, product_id: str) -> ResponseEnvelope[Any]:
        return await self._mutate("admin.approve_product", lambda: self._apis.admin.approve_product(product_id))

    async def reject_product(self, product_id: str, reason: str) -> ResponseEnvelope[Any]:
        return await self._mutate("admin.reject_product", lambda: self._apis.admin.reject_product(product_id, reason))

    async def approve_seller(self, seller_id: str) -> ResponseEnvelope[Any]:
        return await self._mutate("admin.approve_seller", lambda: self._apis.admin.approve_seller(seller_id))

    async def reject_seller(self, seller_id: str, reason: str) -> ResponseEnvelope[Any]:
        return await self._mutate("admin.reject_seller", lambda: self._apis.admin.reject_seller(seller_id, reason))

    # ---------- auth ----------

    async def me(self) -> ResponseEnvelope[Any]:
        return await self._read(_key("auth.me"), self._apis.auth.me)
