"""Marketplace command line interface."""

from __future__ import annotations

import asyncio
from contextlib import AbstractAsyncContextManager
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from cli import doctor
from cli.ui_components import (
    build_cart_table,
    build_identity_panel,
    build_product_panel,
    build_products_table,
    print_banner,
)
from core.config import ENV_PREFIX, AppSettings, get_user_env_file, write_user_env_vars
from core.domain.models import LoginForm, ProductFilters, ResponseEnvelope, Role, SortOption
from core.errors import MarketplaceError
from core.logging_setup import setup_logging
from core.services.context import MarketplaceContext, open_marketplace

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Browse the marketplace, manage your cart and session.")
products_app = typer.Typer(no_args_is_help=True, help="Catalog browsing.")
cart_app = typer.Typer(no_args_is_help=True, help="Shopping cart (buyers).")
config_app = typer.Typer(no_args_is_help=True, help="Client configuration.")

app.add_typer(products_app, name="products")
app.add_typer(cart_app, name="cart")
app.add_typer(config_app, name="config")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _context(settings: AppSettings) -> AbstractAsyncContextManager[MarketplaceContext]:
    return open_marketplace(settings)


def _execute(action: Callable[[MarketplaceContext], Awaitable[T]]) -> T:
    """Run `action` inside a fresh service context, mapping client errors to exit code 1."""

    settings = AppSettings()

    async def _main() -> T:
        async with _context(settings) as ctx:
            return await action(ctx)

    try:
        return asyncio.run(_main())
    except MarketplaceError as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _unwrap(envelope: ResponseEnvelope[T]) -> T:
    if not envelope.success or envelope.data is None:
        _console.print(f"[red]Error:[/red] {envelope.message or 'request failed'}")
        raise typer.Exit(code=1)
    return envelope.data


def _parse_sort(value: str | None) -> SortOption | None:
    if not value:
        return None
    field, _, direction = value.partition(":")
    try:
        return SortOption.model_validate({"field": field, "direction": direction or "asc"})
    except ValueError as exc:
        raise typer.BadParameter(
            "expected FIELD[:asc|desc] with FIELD in price, createdAt, rating, relevance",
            param_hint="--sort",
        ) from exc


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
    banner: bool = typer.Option(False, "--banner", help="Print the welcome banner first."),
) -> None:
    settings = AppSettings()
    setup_logging("DEBUG" if verbose else settings.log_level)
    if banner:
        print_banner(_console)


# ---------- session ----------


@app.command()
def login(
    email: str = typer.Argument(..., help="Account email."),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password."),
) -> None:
    """Log in and persist the session token."""

    identity = _execute(lambda ctx: ctx.session.login(LoginForm(email=email, password=password)))
    _console.print(build_identity_panel(identity))


@app.command()
def logout() -> None:
    """Log out remotely and forget the stored token."""

    async def _logout(ctx: MarketplaceContext) -> None:
        await ctx.session.logout()

    _execute(_logout)
    _console.print("[green]Logged out.[/green]")


@app.command()
def whoami() -> None:
    """Show the identity behind the stored token."""

    async def _whoami(ctx: MarketplaceContext) -> Any:
        return ctx.session.identity

    _console.print(build_identity_panel(_execute(_whoami)))


# ---------- products ----------


@products_app.command("list")
def products_list(
    category: Optional[str] = typer.Option(None, help="Exact category."),
    min_price: Optional[float] = typer.Option(None, "--min-price", min=0, help="Minimum price."),
    max_price: Optional[float] = typer.Option(None, "--max-price", min=0, help="Maximum price."),
    search: Optional[str] = typer.Option(None, help="Free text filter."),
    sort: Optional[str] = typer.Option(None, help="FIELD[:asc|desc], e.g. price:desc."),
    page: int = typer.Option(1, min=1),
    limit: int = typer.Option(20, min=1),
) -> None:
    """List catalog products."""

    filters = ProductFilters(category=category, min_price=min_price, max_price=max_price, search=search)
    sort_option = _parse_sort(sort)
    envelope = _execute(lambda ctx: ctx.queries.products(filters, sort_option, page, limit))
    _console.print(build_products_table(_unwrap(envelope)))


@products_app.command("show")
def products_show(product_id: str = typer.Argument(..., help="Product ID.")) -> None:
    """Show one product."""

    envelope = _execute(lambda ctx: ctx.queries.product(product_id))
    _console.print(build_product_panel(_unwrap(envelope)))


# ---------- cart ----------


@cart_app.command("show")
def cart_show() -> None:
    """Show the cart of the logged-in buyer."""

    async def _cart(ctx: MarketplaceContext) -> Any:
        ctx.session.require_role(Role.BUYER)
        return await ctx.queries.cart()

    _console.print(build_cart_table(_unwrap(_execute(_cart))))


@cart_app.command("add")
def cart_add(
    product_id: str = typer.Argument(..., help="Product ID."),
    quantity: int = typer.Option(1, min=1, help="Units to add."),
) -> None:
    """Add a product to the cart."""

    async def _add(ctx: MarketplaceContext) -> Any:
        ctx.session.require_role(Role.BUYER)
        return await ctx.queries.add_to_cart(product_id, quantity)

    item = _unwrap(_execute(_add))
    _console.print(f"[green]Added[/green] {item.quantity} x {item.product_id} (item {item.id})")


# ---------- config ----------


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""

    settings = AppSettings()
    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("api_base", settings.api_base)
    table.add_row("http_timeout_seconds", f"{settings.http_timeout_seconds:g}")
    table.add_row("user_agent", settings.user_agent)
    table.add_row("token_path", str(settings.resolved_token_path()))
    table.add_row("default_stale_seconds", f"{settings.default_stale_seconds:g}")
    table.add_row("log_level", settings.log_level)
    table.add_row("user env file", str(get_user_env_file()))
    _console.print(table)


@config_app.command("set-api-base")
def config_set_api_base(url: str = typer.Argument(..., help="Base URL of the REST API.")) -> None:
    """Persist the API base URL in the user config .env."""

    if not url.startswith(("http://", "https://")):
        raise typer.BadParameter("must start with http:// or https://", param_hint="URL")
    env_path = write_user_env_vars({f"{ENV_PREFIX}API_BASE": url.rstrip("/")})
    _console.print(f"[green]Saved API base to:[/green] {env_path}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
