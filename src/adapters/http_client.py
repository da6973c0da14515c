"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza base URL, timeouts, headers y el contrato envelope/errores
  para todos los recursos del backend.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.

Sin reintentos ni caché: eso es responsabilidad de la capa de queries.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from core.config import AppSettings
from core.domain.models import ResponseEnvelope
from core.errors import ApiError, TransportError
from core.interfaces.transport import RequestDescriptor

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str | None]


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` apuntando a la API del marketplace.

    Por qué un builder:
    - Centraliza base URL/timeouts/headers para que todos los recursos se
      comporten igual.
    - `transport` permite sustituir la red en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    return httpx.AsyncClient(
        base_url=settings.api_base,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def _error_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}


class RequestClient:
    """Envía `RequestDescriptor`s y normaliza la respuesta a `ResponseEnvelope`.

    - JSON por defecto (`Content-Type: application/json`); las subidas
      multipart no llevan content type explícito.
    - `Authorization: Bearer <token>` cuando el proveedor devuelve token.
    - Fallo de la petición httpx o 2xx no-JSON -> `TransportError`; no-2xx -> `ApiError`.
    """

    def __init__(self, client: httpx.AsyncClient, *, token_provider: TokenProvider | None = None) -> None:
        self._client = client
        self._token_provider = token_provider

    def _headers(self, descriptor: RequestDescriptor) -> dict[str, str]:
        headers: dict[str, str] = {}
        if not descriptor.is_multipart:
            headers["Content-Type"] = "application/json"
        headers.update(dict(descriptor.headers))
        token = self._token_provider() if self._token_provider is not None else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def send(self, descriptor: RequestDescriptor, data_type: Any = Any) -> ResponseEnvelope[Any]:
        target = descriptor.target()
        kwargs: dict[str, Any] = {"headers": self._headers(descriptor)}
        if descriptor.is_multipart:
            kwargs["files"] = dict(descriptor.files)
            kwargs["data"] = dict(descriptor.form)
        elif descriptor.body is not None:
            kwargs["json"] = descriptor.body

        logger.debug("%s %s", descriptor.method, target)
        try:
            response = await self._client.request(descriptor.method, target, **kwargs)
        except httpx.RequestError as exc:
            # Incluye redirecciones infinitas y content-encoding corrupto, no solo red.
            logger.warning("%s %s failed: %s", descriptor.method, target, exc)
            raise TransportError("Network error", cause=exc) from exc

        if not response.is_success:
            payload = _error_payload(response)
            message = None
            if isinstance(payload, dict) and isinstance(payload.get("message"), str) and payload["message"]:
                message = payload["message"]
            logger.warning("%s %s -> HTTP %s", descriptor.method, target, response.status_code)
            raise ApiError(response.status_code, message or f"HTTP {response.status_code}", payload)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("%s %s returned a non-JSON body", descriptor.method, target)
            raise TransportError("Response body is not valid JSON", cause=exc) from exc

        try:
            return ResponseEnvelope[data_type].model_validate(payload)
        except ValidationError as exc:
            logger.warning("%s %s returned an unexpected envelope: %s", descriptor.method, target, exc)
            raise TransportError("Response body is not a valid envelope", cause=exc) from exc
