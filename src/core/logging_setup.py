"""Configuración de logging para la CLI.

Por qué aquí:
- Los módulos solo piden `logging.getLogger(__name__)`; nunca configuran
  handlers. Quien arranca el proceso (la CLI) llama a `setup_logging` una vez.
- Rich ya es dependencia de la CLI, así que su handler da trazas legibles
  sin añadir librerías.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "marketplace-rich"


def setup_logging(level: str = "WARNING", *, console: Console | None = None) -> logging.Handler:
    """Instala un `RichHandler` en el root logger (idempotente).

    Llamadas repetidas solo ajustan el nivel; no duplican handlers.
    """

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return handler

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    return handler
