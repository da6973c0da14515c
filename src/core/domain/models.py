"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- El backend habla camelCase; los modelos exponen snake_case y conservan el
  alias de wire para serializar formularios de vuelta.

Nota:
- Estos modelos describen *qué* devuelve la API, no *cómo* se obtiene.
- Son tolerantes (extra="ignore", defaults generosos): el backend puede
  omitir relaciones anidadas según el endpoint.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

T = TypeVar("T")


class Role(str, Enum):
    ADMIN = "admin"
    SELLER = "seller"
    BUYER = "buyer"


class VerificationState(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ProductStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class WireModel(BaseModel):
    """Base de los modelos que viajan por la API (alias camelCase)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_wire(self, *, exclude_unset: bool = False) -> dict[str, Any]:
        """Serializa al formato JSON del backend."""

        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude_unset=exclude_unset,
        )


# ---------- envelopes ----------


class ResponseEnvelope(BaseModel, Generic[T]):
    """Envoltorio uniforme de toda respuesta del backend.

    Invariante: `success=False` implica `data is None`, aunque el backend
    haya enviado algo en `data`.
    """

    model_config = ConfigDict(extra="ignore")

    success: bool = Field(..., description="Resultado lógico de la operación.")
    data: T | None = Field(default=None, description="Carga útil (solo si success).")
    message: str | None = None
    errors: list[str] | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_data_on_failure(cls, value: Any) -> Any:
        if isinstance(value, dict) and value.get("success") is False and value.get("data") is not None:
            value = {**value, "data": None}
        return value


class PaginatedResponse(WireModel, Generic[T]):
    data: list[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20
    total_pages: int = 0


class MessagePayload(BaseModel):
    message: str = ""


class UploadResult(BaseModel):
    url: str


# ---------- entidades ----------


class Address(WireModel):
    id: str | None = None
    street: str
    city: str
    state: str | None = None
    country: str
    postal_code: str
    is_default: bool = False
    user_id: str | None = None


class Shop(WireModel):
    id: str
    name: str
    description: str | None = None
    logo: str | None = None
    banner: str | None = None
    website: str | None = None
    location: Address | None = None
    is_verified: bool = False
    rating: float = 0.0
    total_sales: int = 0
    owner_id: str | None = None


class BankDetails(WireModel):
    id: str | None = None
    account_holder_name: str
    account_number: str
    routing_number: str
    bank_name: str
    bank_country: str
    currency: str
    is_verified: bool = False


class User(WireModel):
    """Usuario autenticado o listado por el panel de administración."""

    id: str = Field(..., min_length=1)
    email: str
    name: str
    role: Role
    avatar: str | None = None
    phone: str | None = None
    is_email_verified: bool = False
    created_at: str | None = None
    updated_at: str | None = None
    shop: Shop | None = None
    verification_state: VerificationState | None = None


class ShippingOption(WireModel):
    id: str | None = None
    name: str
    price: float
    currency: str
    estimated_days: int
    countries: list[str] = Field(default_factory=list)
    is_international: bool = False


class Review(WireModel):
    id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None
    images: list[str] | None = None
    is_verified: bool = False
    created_at: str | None = None
    product_id: str | None = None
    user_id: str | None = None


class Product(WireModel):
    id: str = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    price: float = 0.0
    currency: str = "USD"
    category: str = ""
    subcategory: str | None = None
    images: list[str] = Field(default_factory=list)
    stock: int = 0
    sku: str | None = None
    status: ProductStatus | None = None
    is_active: bool = True
    tags: list[str] = Field(default_factory=list)
    shipping_options: list[ShippingOption] = Field(default_factory=list)
    shop_id: str | None = None
    shop: Shop | None = None
    reviews: list[Review] = Field(default_factory=list)
    average_rating: float = 0.0
    total_reviews: int = 0


class CartItem(WireModel):
    id: str
    quantity: int = Field(..., ge=0)
    product_id: str
    product: Product | None = None
    user_id: str | None = None


class OrderItem(WireModel):
    id: str
    quantity: int
    price: float
    currency: str
    product_id: str
    product: Product | None = None


class Order(WireModel):
    id: str
    order_number: str = ""
    status: OrderStatus
    total_amount: float = 0.0
    currency: str = "USD"
    items: list[OrderItem] = Field(default_factory=list)
    tracking_number: str | None = None
    notes: str | None = None
    created_at: str | None = None
    buyer_id: str | None = None
    seller_id: str | None = None


class DashboardStats(WireModel):
    total_revenue: float = 0.0
    total_orders: int = 0
    total_products: int = 0
    total_customers: int = 0
    revenue_growth: float = 0.0
    order_growth: float = 0.0
    product_growth: float = 0.0
    customer_growth: float = 0.0


class SalesChart(WireModel):
    period: str
    revenue: float
    orders: int


class TopProduct(WireModel):
    id: str
    title: str
    sales: int
    revenue: float
    image: str | None = None


class AuthPayload(BaseModel):
    """Respuesta de login/register: token emitido + usuario."""

    token: str = Field(..., min_length=1)
    user: User


# ---------- formularios (payloads de escritura) ----------


class LoginForm(WireModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    remember: bool | None = None


class RegisterForm(WireModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    confirm_password: str = Field(..., min_length=1)
    role: Role = Role.BUYER
    accept_terms: bool = False


class ProductForm(WireModel):
    title: str
    description: str
    price: float
    currency: str
    category: str
    subcategory: str | None = None
    stock: int
    sku: str | None = None
    weight: float | None = None
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    shipping_options: list[ShippingOption] = Field(default_factory=list)


class CheckoutForm(WireModel):
    shipping_address: Address
    billing_address: Address
    shipping_option_id: str
    payment_method: Literal["card", "paypal", "bank_transfer"]
    notes: str | None = None


# ---------- filtros y orden (estructuras cerradas) ----------


class ProductFilters(WireModel):
    """Filtros de catálogo.

    Conjunto de campos cerrado (extra="forbid"): el orden de declaración es el
    orden de serialización, así que dos filtros iguales producen siempre la
    misma query y la misma CacheKey.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    category: str | None = Field(default=None, description="Categoría exacta.")
    subcategory: str | None = Field(default=None, description="Subcategoría exacta.")
    min_price: float | None = Field(default=None, ge=0, description="Precio mínimo (inclusive).")
    max_price: float | None = Field(default=None, ge=0, description="Precio máximo (inclusive).")
    currency: str | None = Field(default=None, description="Moneda en la que se expresan los precios.")
    seller_location: str | None = Field(default=None, description="País/ciudad del vendedor.")
    shipping_options: list[str] | None = Field(default=None, description="Opciones de envío admitidas.")
    rating: float | None = Field(default=None, ge=0, le=5, description="Valoración media mínima.")
    tags: list[str] | None = Field(default=None, description="Etiquetas (todas deben estar presentes).")
    search: str | None = Field(default=None, description="Texto libre.")

    def query_pairs(self) -> list[tuple[str, Any]]:
        """Pares (alias, valor) en orden de declaración, vacíos incluidos."""

        return [
            (field.alias or name, getattr(self, name))
            for name, field in type(self).model_fields.items()
        ]


class SortOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: Literal["price", "createdAt", "rating", "relevance"]
    direction: Literal["asc", "desc"] = "asc"

    def query_pairs(self) -> list[tuple[str, Any]]:
        return [("sortBy", self.field), ("sortOrder", self.direction)]
