"""Recurso: catálogo público (`/products*`).

Las funciones `*_query` son la única fuente de la serialización de filtros:
la capa de queries construye la CacheKey con ellas, así que clave y URL
nunca divergen.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from adapters.resources.base import DEFAULT_LIMIT, DEFAULT_PAGE, ResourceApi, page_query, path_segment
from core.domain.keys import QueryPairs, require_identifier, serialize_params
from core.domain.models import (
    PaginatedResponse,
    Product,
    ProductFilters,
    ResponseEnvelope,
    SortOption,
)

FiltersInput = ProductFilters | Mapping[str, Any] | None
SortInput = SortOption | Mapping[str, Any] | None


def coerce_filters(filters: FiltersInput) -> ProductFilters | None:
    if filters is None or isinstance(filters, ProductFilters):
        return filters
    return ProductFilters.model_validate(dict(filters))


def coerce_sort(sort: SortInput) -> SortOption | None:
    if sort is None or isinstance(sort, SortOption):
        return sort
    return SortOption.model_validate(dict(sort))


def products_query(
    filters: FiltersInput = None,
    sort: SortInput = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
) -> QueryPairs:
    extra: list[tuple[str, Any]] = []
    f = coerce_filters(filters)
    if f is not None:
        extra.extend(f.query_pairs())
    s = coerce_sort(sort)
    if s is not None:
        extra.extend(s.query_pairs())
    return page_query(page, limit, extra)


def search_query(
    query: str,
    filters: FiltersInput = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
) -> QueryPairs:
    q = require_identifier("query", query)
    f = coerce_filters(filters)
    return serialize_params([("q", q), ("page", page), ("limit", limit), *(f.query_pairs() if f else [])])


class ProductsApi(ResourceApi):
    async def get_all(
        self,
        filters: FiltersInput = None,
        sort: SortInput = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[PaginatedResponse[Product]]:
        return await self._get("/products", PaginatedResponse[Product], products_query(filters, sort, page, limit))

    async def get_by_id(self, product_id: str) -> ResponseEnvelope[Product]:
        return await self._get(f"/products/{path_segment('product_id', product_id)}", Product)

    async def get_by_category(
        self,
        category: str,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[PaginatedResponse[Product]]:
        path = f"/products/category/{path_segment('category', category)}"
        return await self._get(path, PaginatedResponse[Product], page_query(page, limit))

    async def search(
        self,
        query: str,
        filters: FiltersInput = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[PaginatedResponse[Product]]:
        return await self._get("/products/search", PaginatedResponse[Product], search_query(query, filters, page, limit))

    async def get_featured(self) -> ResponseEnvelope[list[Product]]:
        return await self._get("/products/featured", list[Product])

    async def get_categories(self) -> ResponseEnvelope[list[str]]:
        return await self._get("/products/categories", list[str])
