"""Jerarquía de errores del cliente.

Por qué una jerarquía propia:
- Los consumidores capturan `MarketplaceError` sin conocer httpx.
- Cada fallo lleva los datos justos para decidir (status, payload, mensaje).

Ninguna operación reintenta: reintentar es decisión del llamador.
"""

from __future__ import annotations

from typing import Any


class MarketplaceError(Exception):
    """Base de todos los errores del cliente."""


class TransportError(MarketplaceError):
    """Red inaccesible o cuerpo de respuesta no parseable como JSON."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ApiError(MarketplaceError):
    """Respuesta HTTP fuera del rango 2xx."""

    def __init__(self, status: int, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.payload = payload if payload is not None else {}

    def __repr__(self) -> str:
        return f"ApiError(status={self.status!r}, message={self.message!r})"


class InvalidIdentifierError(MarketplaceError, ValueError):
    """Un identificador requerido llegó vacío (no se puede construir la petición ni la CacheKey)."""

    def __init__(self, name: str) -> None:
        super().__init__(f"'{name}' must be a non-empty identifier")
        self.name = name


class AuthenticationError(MarketplaceError):
    """El backend respondió `success=False` a login/register."""


class NotAuthenticatedError(MarketplaceError):
    """Se requiere una identidad y no hay sesión activa."""


class AccessDeniedError(MarketplaceError):
    """La identidad actual no tiene el rol requerido."""

    def __init__(self, role: str, allowed: tuple[str, ...]) -> None:
        super().__init__(f"role '{role}' is not allowed (expected one of: {', '.join(allowed)})")
        self.role = role
        self.allowed = allowed
