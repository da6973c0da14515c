"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP, almacenamiento del token) lean config de
  forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR_NAME = "marketplace"
ENV_PREFIX = "MARKETPLACE_"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias).

    Ahí viven el `.env` global y el fichero de sesión (`session.json`).
    """

    home = Path.home()
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA") or home)
    elif sys.platform == "darwin":
        base = home / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME") or home / ".config")
    return base / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def read_user_env_vars(env_path: Path | None = None) -> dict[str, str]:
    """Lee `CLAVE=valor` del .env de usuario; ignora comentarios y líneas sin `=`."""

    env_path = env_path or get_user_env_file()
    if not env_path.is_file():
        return {}

    values: dict[str, str] = {}
    for line in env_path.read_text(encoding="utf-8").splitlines():
        key, sep, value = line.strip().partition("=")
        if not sep or not key or key.startswith("#"):
            continue
        values[key.strip()] = value.strip().strip("\"'")
    return values


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Fusiona `values` en el .env de usuario (un valor None borra la clave)."""

    env_path = env_path or get_user_env_file()
    merged = read_user_env_vars(env_path)
    for key, value in values.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value

    body = "".join(f"{key}={merged[key]}\n" for key in sorted(merged))
    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.write_text(f"# {APP_DIR_NAME} user config\n{body}", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración del cliente del marketplace.

    Prioridad (mayor a menor): argumentos explícitos, variables `MARKETPLACE_*`,
    `.env` de usuario, `.env` del proyecto, defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        case_sensitive=False,
        # El último fichero gana: el .env de usuario pisa al del proyecto.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base: str = Field(
        default="http://localhost:3000/api",
        min_length=1,
        description="URL base de la API REST; todas las rutas son relativas a ella.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="marketplace-client/0.1",
        min_length=1,
        description="User-Agent enviado al backend.",
    )
    token_path: Path | None = Field(
        default=None,
        description="Ruta del fichero donde se persiste el token (por defecto en el directorio de config).",
    )
    default_stale_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Ventana de frescura por defecto para lecturas cacheadas (segundos).",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging para la CLI.",
    )

    def resolved_token_path(self) -> Path:
        return self.token_path or get_user_config_dir() / "session.json"
