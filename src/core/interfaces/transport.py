"""Contrato del cliente de peticiones.

Los clientes de recursos dependen de este Protocol y no de httpx: en tests se
puede sustituir por un stub que devuelva envelopes prefabricados.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from core.domain.keys import QueryPairs, encode_query
from core.domain.models import ResponseEnvelope

# (nombre del fichero, contenido, mime)
FilePart = tuple[str, bytes, str]


@dataclass(frozen=True)
class RequestDescriptor:
    """Petición inmutable: se construye una vez por llamada."""

    path: str
    method: str = "GET"
    body: Any = None
    headers: tuple[tuple[str, str], ...] = ()
    query: QueryPairs = ()
    files: tuple[tuple[str, FilePart], ...] = field(default=())
    form: tuple[tuple[str, str], ...] = ()

    @property
    def is_multipart(self) -> bool:
        return bool(self.files)

    def target(self) -> str:
        """Ruta relativa con query string (la forma que se loguea)."""

        if not self.query:
            return self.path
        return f"{self.path}?{encode_query(self.query)}"


@runtime_checkable
class RequestSender(Protocol):
    async def send(self, descriptor: RequestDescriptor, data_type: Any = Any) -> ResponseEnvelope[Any]:
        """Ejecuta la petición y devuelve el envelope validado contra `data_type`."""

        ...
