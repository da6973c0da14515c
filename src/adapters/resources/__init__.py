"""Clientes tipados por recurso del backend.

Por qué un paquete:
- Agrupa un módulo por área (auth, catálogo, comprador, vendedor, admin).
- Todos dependen de `core.interfaces.transport.RequestSender`, no de httpx.
"""

from dataclasses import dataclass

from adapters.resources.admin import AdminApi
from adapters.resources.auth import AuthApi
from adapters.resources.buyer import BuyerApi
from adapters.resources.products import ProductsApi
from adapters.resources.seller import SellerApi
from core.interfaces.transport import RequestSender


@dataclass(frozen=True)
class ResourceClients:
    """Los cinco clientes de recurso sobre un mismo `RequestSender`."""

    auth: AuthApi
    products: ProductsApi
    buyer: BuyerApi
    seller: SellerApi
    admin: AdminApi

    @classmethod
    def from_sender(cls, sender: RequestSender) -> "ResourceClients":
        return cls(
            auth=AuthApi(sender),
            products=ProductsApi(sender),
            buyer=BuyerApi(sender),
            seller=SellerApi(sender),
            admin=AdminApi(sender),
        )


__all__ = [
	"AdminApi",
	"AuthApi",
	"BuyerApi",
	"ProductsApi",
	"ResourceClients",
	"SellerApi",
]
