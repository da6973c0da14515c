"""Persistencia del token de sesión.

Por qué un JSON en el directorio de config:
- Sobrevive entre ejecuciones de la CLI (el equivalente a localStorage).
- Se guarda bajo la clave fija `auth_token`, dejando sitio a otras claves.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from core.interfaces.token_store import AUTH_TOKEN_KEY

logger = logging.getLogger(__name__)


class FileTokenStore:
    """Token persistido en un fichero JSON (`{"auth_token": "..."}`)."""

    def __init__(self, path: Path, *, key: str = AUTH_TOKEN_KEY) -> None:
        self._path = path
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        os.replace(tmp, self._path)

    def get_token(self) -> str | None:
        value = self._read().get(self._key)
        return value if isinstance(value, str) and value else None

    def set_token(self, token: str) -> None:
        data = self._read()
        data[self._key] = token
        self._write(data)

    def remove_token(self) -> None:
        data = self._read()
        if self._key not in data:
            return
        del data[self._key]
        if data:
            self._write(data)
        else:
            self._path.unlink(missing_ok=True)


class MemoryTokenStore:
    """Token en memoria (procesos efímeros y tests)."""

    def __init__(self, token: str | None = None) -> None:
        self._data: dict[str, str] = {}
        if token:
            self._data[AUTH_TOKEN_KEY] = token

    def get_token(self) -> str | None:
        return self._data.get(AUTH_TOKEN_KEY)

    def set_token(self, token: str) -> None:
        self._data[AUTH_TOKEN_KEY] = token

    def remove_token(self) -> None:
        self._data.pop(AUTH_TOKEN_KEY, None)
