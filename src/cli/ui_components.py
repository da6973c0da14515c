"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import CartItem, PaginatedResponse, Product
from core.services.session import Identity


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (JSON/pipelines).
    """

    title = Text("Marketplace", style="bold cyan")
    subtitle = Text("Catálogo • Carrito • Pedidos", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _money(amount: float, currency: str) -> str:
    return f"{amount:,.2f} {currency}"


def build_products_table(page: PaginatedResponse[Product]) -> Table:
    """Tabla de una página del catálogo."""

    table = Table(title=f"Products (page {page.page}/{max(page.total_pages, 1)}, {page.total} total)")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Category", style="magenta")
    table.add_column("Price", style="green", justify="right")
    table.add_column("Stock", justify="right")
    table.add_column("Rating", style="yellow", justify="right")
    for product in page.data:
        table.add_row(
            product.id,
            product.title,
            product.category,
            _money(product.price, product.currency),
            str(product.stock),
            f"{product.average_rating:.1f} ({product.total_reviews})",
        )
    return table


def build_product_panel(product: Product) -> Panel:
    """Panel de detalle de un producto."""

    body = Text()
    body.append(product.description.strip() + "\n\n" if product.description else "")
    body.append("Price: ", style="bold")
    body.append(_money(product.price, product.currency) + "\n")
    body.append("Category: ", style="bold")
    body.append(product.category + (f" / {product.subcategory}" if product.subcategory else "") + "\n")
    body.append("Stock: ", style="bold")
    body.append(f"{product.stock}\n")
    if product.tags:
        body.append("Tags: ", style="bold")
        body.append(", ".join(product.tags) + "\n")
    if product.shop is not None:
        body.append(f"\nSold by {product.shop.name}", style="dim")
    return Panel(body, title=Text(product.title or product.id, style="bold cyan"), border_style="cyan")


def build_cart_table(items: Iterable[CartItem]) -> Table:
    """Tabla del carrito con subtotal por línea."""

    table = Table(title="Cart")
    table.add_column("Item", style="cyan", no_wrap=True)
    table.add_column("Product", style="white")
    table.add_column("Qty", justify="right")
    table.add_column("Subtotal", style="green", justify="right")
    for item in items:
        product = item.product
        title = product.title if product is not None else item.product_id
        subtotal = _money(product.price * item.quantity, product.currency) if product is not None else "-"
        table.add_row(item.id, title, str(item.quantity), subtotal)
    return table


def build_identity_panel(identity: Identity | None) -> Panel:
    """Panel con la identidad actual (o sesión anónima)."""

    if identity is None:
        return Panel(Text("Not logged in", style="dim"), title="Session", border_style="yellow")

    user = identity.user
    body = Text()
    body.append(f"{user.name} <{user.email}>\n", style="bold")
    body.append("Role: ")
    body.append(identity.role.value, style="magenta")
    body.append(f"\nUser ID: {identity.user_id}", style="dim")
    if user.shop is not None:
        body.append(f"\nShop: {user.shop.name}")
    return Panel(body, title="Session", border_style="green")
