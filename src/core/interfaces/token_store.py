"""Contrato de persistencia del token de sesión.

Por qué Protocol:
- La sesión no sabe si el token vive en un fichero, en memoria o en un
  keyring; solo necesita leerlo, guardarlo y borrarlo.
- Permite testear el ciclo de vida de la sesión con un store en memoria.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

AUTH_TOKEN_KEY = "auth_token"


@runtime_checkable
class TokenStore(Protocol):
    """Almacén clave/valor del token bajo la clave fija `AUTH_TOKEN_KEY`.

    Reglas de diseño:
    - Operaciones síncronas: son locales y no deben abrir un punto de
      suspensión entre "persistir token" y "publicar identidad".
    - `set_token` falla con excepción si no puede persistir.
    """

    def get_token(self) -> str | None:
        ...

    def set_token(self, token: str) -> None:
        ...

    def remove_token(self) -> None:
        ...
