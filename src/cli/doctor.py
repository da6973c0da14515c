"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.token_store import FileTokenStore
from core.config import AppSettings, get_user_env_file

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings, transport: httpx.AsyncBaseTransport | None = None) -> tuple[bool, str]:
    try:
        async with build_async_client(settings, transport=transport) as client:
            response = await client.get("/products/categories")
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc) or exc.__class__.__name__


def _check_token(settings: AppSettings) -> tuple[str, str]:
    store = FileTokenStore(settings.resolved_token_path())
    if store.get_token() is None:
        return "NONE", f"No stored token at {store.path}"
    return "OK", f"Token stored at {store.path}"


def build_report(settings: AppSettings, transport: httpx.AsyncBaseTransport | None = None) -> tuple[Table, bool]:
    """Run every check and return the rendered table plus overall health."""

    table = Table(title="Marketplace Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("API base", "OK", settings.api_base)
    table.add_row("Timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    table.add_row("User config", "OK", str(get_user_env_file()))

    # Connectivity (best-effort)
    ok_http, detail_http = asyncio.run(_check_http(settings, transport))
    table.add_row("API connectivity", "OK" if ok_http else "FAIL", detail_http)

    # Token
    token_status, token_detail = _check_token(settings)
    table.add_row("Session token", token_status, token_detail)

    return table, ok_http


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    table, healthy = build_report(settings)
    _console.print(table)

    if not healthy:
        _console.print(
            "\n[yellow]Note:[/yellow] Check that the backend is running, or point the client elsewhere with "
            "`marketplace config set-api-base URL`."
        )
        raise typer.Exit(code=1)
