"""Script de ejecución.

Por qué existe:
- `python -m main` desde `src/` durante desarrollo, además del script
  `marketplace` que instala pip.
"""

from __future__ import annotations

import sys

# Rich tables print non-ASCII symbols; cp1252 consoles on Windows reject them.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
