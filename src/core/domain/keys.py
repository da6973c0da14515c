"""Claves de caché y patrones de invalidación.

Por qué un módulo propio:
- La CacheKey se deriva de la *misma* serialización que la query HTTP, así que
  dos lecturas con parámetros iguales comparten entrada y petición en vuelo.
- Los patrones (`KeyPattern`) son datos declarados, no código con efectos:
  la tabla de mutaciones se puede testear sin red.

Formato textual de un patrón:
- "seller.products"      -> cualquier clave con ese recurso exacto.
- "products.*"           -> el recurso y todos sus sub-recursos con punto.
- "product?id=42"        -> una única clave exacta.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from string import Formatter
from typing import Any, Iterable
from urllib.parse import quote_plus, urlencode

from core.errors import InvalidIdentifierError

QueryPairs = tuple[tuple[str, str], ...]


def _format_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(_format_value(v) for v in value)
    return str(value)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value == "":
        return True
    if isinstance(value, (list, tuple)) and not value:
        return True
    return False


def serialize_params(pairs: Iterable[tuple[str, Any]]) -> QueryPairs:
    """Normaliza pares (nombre, valor) conservando el orden dado.

    Descarta None, "" y listas vacías: nunca producen fragmentos `key=`.
    """

    return tuple((name, _format_value(value)) for name, value in pairs if not _is_empty(value))


def encode_query(pairs: QueryPairs) -> str:
    return urlencode(pairs)


def require_identifier(name: str, value: Any) -> str:
    """Devuelve el identificador como str o falla si está vacío."""

    if value is None:
        raise InvalidIdentifierError(name)
    text = str(value).strip()
    if not text:
        raise InvalidIdentifierError(name)
    return text


@dataclass(frozen=True, order=True)
class CacheKey:
    """Identificador estructural de un resultado cacheado: (recurso, params)."""

    resource: str
    params: str = ""

    def __post_init__(self) -> None:
        if not self.resource or self.resource.strip() != self.resource:
            raise InvalidIdentifierError("resource")

    @classmethod
    def of(cls, resource: str, pairs: Iterable[tuple[str, Any]] = ()) -> "CacheKey":
        return cls(resource, encode_query(serialize_params(pairs)))

    def is_within(self, resource: str) -> bool:
        """True si la clave pertenece a `resource` o a un sub-recurso suyo."""

        return self.resource == resource or self.resource.startswith(resource + ".")

    def __str__(self) -> str:
        return f"{self.resource}?{self.params}" if self.params else self.resource


@dataclass(frozen=True)
class KeyPattern:
    """Objetivo de invalidación declarado por una mutación."""

    resource: str
    params: str | None = None
    nested: bool = False

    @classmethod
    def parse(cls, text: str) -> "KeyPattern":
        raw = text.strip()
        if not raw:
            raise InvalidIdentifierError("pattern")
        resource, sep, params = raw.partition("?")
        if resource.endswith(".*"):
            if sep:
                raise ValueError(f"wildcard pattern cannot carry params: {text!r}")
            return cls(resource[:-2], None, nested=True)
        return cls(resource, params if sep else None)

    @classmethod
    def render(cls, template: str, values: dict[str, Any]) -> "KeyPattern":
        """Formatea una plantilla (`"product?id={id}"`) con valores url-encoded."""

        names = {field for _, field, _, _ in Formatter().parse(template) if field}
        encoded = {name: quote_plus(require_identifier(name, values.get(name))) for name in names}
        return cls.parse(template.format(**encoded))

    def matches(self, key: CacheKey) -> bool:
        if self.nested:
            return key.is_within(self.resource)
        if key.resource != self.resource:
            return False
        return self.params is None or key.params == self.params

    def __str__(self) -> str:
        if self.nested:
            return f"{self.resource}.*"
        return f"{self.resource}?{self.params}" if self.params is not None else self.resource
