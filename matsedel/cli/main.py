"""Matsedel CLI using Typer."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from matsedel.core.errors import MatsedelError
from matsedel.core.schema import MenuID

# Load .env file from current directory or project root
_env_paths = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent / ".env",
]
for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(_env_path)
        break

console = Console()
app = typer.Typer(
    name="matsedel",
    help="Matsedel - School lunch menus from multiple providers behind one API",
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show upstream request logs"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_date(value: str | None, option: str):
    """Parse an ISO date option, exiting with an error if it is invalid."""
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        rprint(f"[red]Error:[/red] {option} must be a date like 2024-05-17 (got '{value}')")
        raise typer.Exit(1)


def _run(coro):
    """Run a service call, turning Matsedel errors into a non-zero exit."""
    try:
        return asyncio.run(coro)
    except MatsedelError as e:
        rprint(f"[red]Error ({e.kind}):[/red] {e.message}")
        raise typer.Exit(1)


@app.command()
def run(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Enable auto-reload for development"
    ),
    log_level: str = typer.Option("info", "--log-level", help="Uvicorn log level"),
) -> None:
    """Start the Matsedel web server."""
    import uvicorn

    typer.echo(f"Starting Matsedel on http://{host}:{port}")
    typer.echo("Press Ctrl+C to stop the server")
    typer.echo("")

    uvicorn.run(
        "matsedel.web.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


@app.command()
def version() -> None:
    """Show the Matsedel version."""
    typer.echo("Matsedel v0.1.0")


@app.command()
def check_config() -> None:
    """Check the current configuration status."""
    from matsedel.upstream.adapters import get_adapter_info, list_adapters
    from matsedel.upstream.registry import ProviderRegistry, get_config_path, load_default_config

    typer.echo("Matsedel Configuration")
    typer.echo("=" * 40)

    path = get_config_path()
    typer.echo(f"  providers.yaml: {path if path.exists() else 'Not found (using built-in providers)'}")

    config = load_default_config()
    typer.echo(f"  User agent: {config.global_config.user_agent}")
    typer.echo(f"  Max attempts: {config.global_config.max_attempts}")

    for name in list_adapters():
        info = get_adapter_info(name)
        typer.echo(f"  Adapter: {info['name']} v{info['version']} ({info['class']})")

    for provider in config.providers:
        if not provider.enabled:
            typer.echo(f"  Provider: {provider.id} ({provider.adapter}, disabled) {provider.base_url}")

    try:
        registry = ProviderRegistry.from_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    for provider in registry.providers:
        info = provider.implementation.get_info()
        typer.echo(
            f"  Provider: {provider.info.id} ({info['name']} v{info['version']}, enabled) "
            f"{info['base_url']}"
        )


@app.command()
def providers() -> None:
    """List the registered providers."""
    from matsedel.services.menu_service import get_menu_service

    table = Table(title="Providers")
    table.add_column("ID", style="cyan")
    table.add_column("Name")

    for info in get_menu_service().list_providers():
        table.add_row(info.id, info.name)

    console.print(table)


@app.command()
def menus(
    provider: Optional[str] = typer.Option(None, "--provider", "-P", help="Only show this provider"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum menus to show"),
) -> None:
    """List menus from every provider."""
    from matsedel.services.menu_service import get_menu_service

    results = _run(get_menu_service().list_menus())
    if provider:
        results = [menu for menu in results if menu.provider.id == provider]

    table = Table(title=f"Menus ({len(results)})")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Provider")

    for menu in results[:limit] if limit else results:
        table.add_row(str(menu.id), menu.title, menu.provider.name)

    console.print(table)


@app.command()
def menu(menu_id: str = typer.Argument(..., help="Menu ID, e.g. skolmaten.85957")) -> None:
    """Show a single menu."""
    from matsedel.services.menu_service import get_menu_service

    result = _run(_query(get_menu_service(), menu_id))
    rprint(f"[cyan]{result.id}[/cyan] {result.title} [dim]({result.provider.name})[/dim]")


async def _query(service, menu_id: str):
    return await service.query_menu(MenuID.decode(menu_id))


async def _days(service, menu_id: str, first, last):
    return await service.list_days(MenuID.decode(menu_id), first, last)


@app.command()
def days(
    menu_id: str = typer.Argument(..., help="Menu ID, e.g. skolmaten.85957"),
    first: Optional[str] = typer.Option(None, "--first", help="First date (YYYY-MM-DD)"),
    last: Optional[str] = typer.Option(None, "--last", help="Last date (YYYY-MM-DD)"),
) -> None:
    """List the days and meals of a menu."""
    from matsedel.services.menu_service import get_menu_service

    results = _run(
        _days(
            get_menu_service(),
            menu_id,
            _parse_date(first, "--first"),
            _parse_date(last, "--last"),
        )
    )

    if not results:
        rprint("[yellow]No days found[/yellow]")
        return

    table = Table(title=f"Days for {menu_id}")
    table.add_column("Date", style="cyan")
    table.add_column("Meals")

    for day in results:
        table.add_row(day.date.isoformat(), "\n".join(meal.value for meal in day.meals))

    console.print(table)


if __name__ == "__main__":
    app()
