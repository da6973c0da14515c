"""Piezas comunes de los clientes de recursos.

Cada cliente de recurso:
- valida identificadores requeridos (no vacíos),
- serializa paginación/filtros en orden canónico,
- delega en el `RequestSender` (sin caché, sin reintentos).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable
from urllib.parse import quote

from pydantic import BaseModel

from core.domain.keys import QueryPairs, require_identifier, serialize_params
from core.domain.models import ResponseEnvelope, WireModel
from core.interfaces.transport import RequestDescriptor, RequestSender

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20


def page_query(page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT, extra: Iterable[tuple[str, Any]] = ()) -> QueryPairs:
    """`page` y `limit` primero, luego los parámetros propios del recurso."""

    return serialize_params([("page", page), ("limit", limit), *extra])


def path_segment(name: str, value: Any) -> str:
    return quote(require_identifier(name, value), safe="")


def _wire_value(value: Any) -> Any:
    if isinstance(value, WireModel):
        return value.to_wire()
    if isinstance(value, list):
        return [_wire_value(item) for item in value]
    return value


def to_payload(
    data: Mapping[str, Any] | BaseModel,
    *,
    partial: bool = False,
    model: type[WireModel] | None = None,
) -> dict[str, Any]:
    """Cuerpo JSON de una escritura; con `partial` solo viajan los campos fijados.

    Con `model`, las claves de un mapping se traducen a sus alias camelCase
    (`shipping_options` -> `shippingOptions`); las que ya vienen en camelCase
    o no son campos del modelo pasan tal cual.
    """

    if isinstance(data, WireModel):
        return data.to_wire(exclude_unset=partial)
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", exclude_none=True)
    aliases = {name: field.alias or name for name, field in model.model_fields.items()} if model else {}
    return {aliases.get(k, k): _wire_value(v) for k, v in data.items() if v is not None}


class ResourceApi:
    def __init__(self, sender: RequestSender) -> None:
        self._sender = sender

    async def _get(self, path: str, data_type: Any, query: QueryPairs = ()) -> ResponseEnvelope[Any]:
        return await self._sender.send(RequestDescriptor(path, "GET", query=query), data_type)

    async def _write(self, method: str, path: str, data_type: Any, body: Any = None) -> ResponseEnvelope[Any]:
        return await self._sender.send(RequestDescriptor(path, method, body=body), data_type)
