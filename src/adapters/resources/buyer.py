"""Recurso: comprador (`/buyer/*`): carrito, pedidos, reseñas y direcciones."""

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
from core.domain.keys import QueryPairs, require_identifier
from core.domain.models import (
    Address,
    CartItem,
    CheckoutForm,
    MessagePayload,
    Order,
    PaginatedResponse,
    ResponseEnvelope,
    Review,
)


def orders_query(status: str | None = None, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> QueryPairs:
    return page_query(page, limit, [("status", status)])


class BuyerApi(ResourceApi):
    # ---------- carrito ----------
    async def get_cart(self) -> ResponseEnvelope[list[CartItem]]:
        return await self._get("/buyer/cart", list[CartItem])

    async def add_to_cart(self, product_id: str, quantity: int) -> ResponseEnvelope[CartItem]:
        body = {"productId": require_identifier("product_id", product_id), "quantity": quantity}
        return await self._write("POST", "/buyer/cart", CartItem, body)

    async def update_cart_item(self, item_id: str, quantity: int) -> ResponseEnvelope[CartItem]:
        path = f"/buyer/cart/{path_segment('item_id', item_id)}"
        return await self._write("PUT", path, CartItem, {"quantity": quantity})

    async def remove_from_cart(self, item_id: str) -> ResponseEnvelope[MessagePayload]:
        return await self._write("DELETE", f"/buyer/cart/{path_segment('item_id', item_id)}", MessagePayload)

    async def clear_cart(self) -> ResponseEnvelope[MessagePayload]:
        return await self._write("DELETE", "/buyer/cart", MessagePayload)

    # ---------- pedidos ----------
    async def get_orders(
        self,
        status: str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ResponseEnvelope[PaginatedResponse[Order]]:
        return await self._get("/buyer/orders", PaginatedResponse[Order], orders_query(status, page, limit))

    async def get_order_by_id(self, order_id: str) -> ResponseEnvelope[Order]:
        return await self._get(f"/buyer/orders/{path_segment('order_id', order_id)}", Order)

    async def create_order(self, form: CheckoutForm | Mapping[str, Any]) -> ResponseEnvelope[Order]:
        form = CheckoutForm.model_validate(form) if isinstance(form, Mapping) else form
        return await self._write("POST", "/buyer/orders", Order, form.to_wire())

    async def cancel_order(self, order_id: str, reason: str | None = None) -> ResponseEnvelope[Order]:
        path = f"/buyer/orders/{path_segment('order_id', order_id)}/cancel"
        return await self._write("POST", path, Order, to_payload({"reason": reason}))

    # ---------- reseñas ----------
    async def add_review(
        self,
        product_id: str,
        rating: int,
        comment: str | None = None,
        images: list[str] | None = None,
    ) -> ResponseEnvelope[Review]:
        body = to_payload(
            {
                "productId": require_identifier("product_id", product_id),
                "rating": int(rating),
                "comment": comment,
                "images": images,
            }
        )
        return await self._write("POST", "/buyer/reviews", Review, body)

    # ---------- direcciones ----------
    async def get_addresses(self) -> ResponseEnvelope[list[Address]]:
        return await self._get("/buyer/addresses", list[Address])

    async def add_address(self, address: Address | Mapping[str, Any]) -> ResponseEnvelope[Address]:
        address = Address.model_validate(address) if isinstance(address, Mapping) else address
        body = address.to_wire()
        body.pop("id", None)
        body.pop("userId", None)
        return await self._write("POST", "/buyer/addresses", Address, body)

    async def update_address(self, address_id: str, data: Mapping[str, Any]) -> ResponseEnvelope[Address]:
        path = f"/buyer/addresses/{path_segment('address_id', address_id)}"
        return await self._write("PUT", path, Address, to_payload(data, partial=True, model=Address))

    async def delete_address(self, address_id: str) -> ResponseEnvelope[MessagePayload]:
        path = f"/buyer/addresses/{path_segment('address_id', address_id)}"
        return await self._write("DELETE", path, MessagePayload)
