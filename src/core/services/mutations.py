"""Write coordination and the declared mutation -> invalidation table.

Every write the application performs has one row in `MUTATION_TABLE`. The
row lists the cache key patterns that become stale once the write returns.
Rows are fixed per operation; they are never derived from response payloads.
Templates may reference identifiers passed at call time
(`"product?id={product_id}"`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from core.domain.keys import KeyPattern
from core.domain.models import ResponseEnvelope
from core.services.cache_store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

MUTATION_TABLE: dict[str, tuple[str, ...]] = {
    # seller
    "seller.create_product": ("seller.products", "products.*"),
    "seller.update_product": ("seller.products", "product?id={product_id}", "products.*"),
    "seller.delete_product": ("seller.products", "product?id={product_id}", "products.*"),
    "seller.update_order_status": ("seller.orders", "buyer.orders", "buyer.order?id={order_id}"),
    "seller.update_shop": ("auth.me",),
    "seller.upload_document": ("auth.me",),
    "seller.update_bank_details": ("auth.me",),
    # buyer
    "buyer.add_to_cart": ("buyer.cart",),
    "buyer.update_cart_item": ("buyer.cart",),
    "buyer.remove_from_cart": ("buyer.cart",),
    "buyer.clear_cart": ("buyer.cart",),
    "buyer.create_order": ("buyer.orders", "buyer.cart"),
    "buyer.cancel_order": ("buyer.orders", "buyer.order?id={order_id}", "seller.orders"),
    "buyer.add_review": ("product?id={product_id}", "products.*"),
    "buyer.add_address": ("buyer.addresses",),
    "buyer.update_address": ("buyer.addresses",),
    "buyer.delete_address": ("buyer.addresses",),
    # admin
    "admin.update_user_role": ("admin.users",),
    "admin.approve_product": ("admin.products.pending", "products.*"),
    "admin.reject_product": ("admin.products.pending",),
    "admin.approve_seller": ("admin.sellers.pending", "admin.users"),
    "admin.reject_seller": ("admin.sellers.pending",),
}


@dataclass(frozen=True)
class MutationDescriptor:
    resource: str
    operation: str
    invalidates: tuple[KeyPattern, ...]

    @property
    def name(self) -> str:
        return f"{self.resource}.{self.operation}"


def describe(name: str, **identifiers: Any) -> MutationDescriptor:
    """Build the descriptor for `name` (`"<resource>.<operation>"`) from the table.

    Raises KeyError for unknown operations and InvalidIdentifierError when a
    template needs an identifier that is missing or empty.
    """

    templates = MUTATION_TABLE[name]
    resource, _, operation = name.partition(".")
    patterns = tuple(KeyPattern.render(template, identifiers) for template in templates)
    return MutationDescriptor(resource=resource, operation=operation, invalidates=patterns)


class MutationCoordinator:
    """Runs writes and invalidates their declared dependents before returning."""

    def __init__(self, cache: CacheStore) -> None:
        self._cache = cache

    async def mutate(
        self,
        descriptor: MutationDescriptor,
        call: Callable[[], Awaitable[ResponseEnvelope[T]]],
    ) -> ResponseEnvelope[T]:
        # A raising call leaves the cache untouched; the error propagates as is.
        envelope = await call()
        invalidated = 0
        for pattern in descriptor.invalidates:
            invalidated += len(self._cache.invalidate_matching(pattern))
        logger.debug(
            "%s done (success=%s), %d cache entries invalidated",
            descriptor.name,
            envelope.success,
            invalidated,
        )
        return envelope
