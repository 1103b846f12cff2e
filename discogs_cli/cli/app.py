"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Awaitable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from discogs_cli import __version__
from discogs_cli.api.client import DiscogsClient
from discogs_cli.exceptions import DiscogsCliError
from discogs_cli.models.config import ClientConfig
from discogs_cli.models.database import (
    Currency,
    EntityType,
    ReleaseOptions,
    SearchOptions,
)
from discogs_cli.storage.config_manager import ConfigManager

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_rate_limit,
    print_release,
    print_search_results,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("discogs_cli")

app = typer.Typer(
    name="discogs-cli",
    help=(
        "Look up releases and search the Discogs database from the terminal. Use"
        " 'discogs-cli <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "discogs-cli"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _load_config(max_requests: Optional[int] = None) -> ClientConfig:
    config_manager = ConfigManager(CONFIG_FILE)
    return config_manager.load_config({"max_requests": max_requests})


def _run(coro: Awaitable[Any]) -> Any:
    """Runs a coroutine, reporting application errors and exiting with code 1."""
    try:
        return asyncio.run(coro)
    except DiscogsCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Discogs Database CLI"""
    if version:
        console.print(f"[bold]discogs-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("discogs_cli").setLevel(log_level)

    if show_config:
        try:
            config = _load_config()
        except DiscogsCliError as e:
            console.print(format_error_with_suggestions(e))
            raise typer.Exit(code=1) from e
        print_config(CONFIG_FILE, config.model_dump())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    key: Optional[str] = typer.Option(None, "--key", help="Consumer key."),
    secret: Optional[str] = typer.Option(None, "--secret", help="Consumer secret."),
    token: Optional[str] = typer.Option(
        None, "--token", help="Personal access token."
    ),
    app_name: str = typer.Option(
        "", "--app-name", help="User-Agent sent to Discogs, e.g. 'MyApp/1.0'."
    ),
    max_requests: int = typer.Option(
        0, "--max-requests", help="Requests per minute ceiling (0 = API default)."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration without asking."
    ),
):
    """Save Discogs credentials to the configuration file."""
    if bool(key) != bool(secret):
        console.print("[red]✗ --key and --secret must be given together.[/red]")
        raise typer.Exit(code=1)

    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {
        "app_name": app_name,
        "consumer_key": key,
        "consumer_secret": secret,
        "access_token": token,
        "max_requests": max_requests,
    }
    try:
        ConfigManager(CONFIG_FILE).save_new_config(settings)
    except DiscogsCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    if not key:
        console.print(
            "[yellow]⚠️  No consumer key/secret given: search will be unavailable."
            "[/yellow]"
        )


@app.command()
def release(
    release_id: int = typer.Argument(..., help="The Discogs release ID."),
    currency: Optional[Currency] = typer.Option(
        None, "--currency", "-c", help="Currency for marketplace prices."
    ),
    max_requests: Optional[int] = typer.Option(
        None, "--max-requests", help="Requests per minute ceiling."
    ),
):
    """Show a release."""

    async def _release_async():
        config = _load_config(max_requests)
        async with DiscogsClient(config) as client:
            return await client.release(release_id, ReleaseOptions(curr_abbr=currency))

    print_release(_run(_release_async()))


@app.command()
def search(
    query: Optional[str] = typer.Argument(None, help="Free-text query."),
    entity_type: Optional[EntityType] = typer.Option(
        None, "--type", "-t", help="Only return this type of entity."
    ),
    artist: Optional[str] = typer.Option(None, "--artist", help="Artist name."),
    title: Optional[str] = typer.Option(None, "--title", help="Release title."),
    year: Optional[str] = typer.Option(None, "--year", help="Release year."),
    page: Optional[int] = typer.Option(None, "--page", help="Result page."),
    per_page: Optional[int] = typer.Option(
        None, "--per-page", help="Results per page (max 100)."
    ),
    max_requests: Optional[int] = typer.Option(
        None, "--max-requests", help="Requests per minute ceiling."
    ),
):
    """Search the Discogs database. Requires a consumer key and secret."""
    if per_page is not None and not 1 <= per_page <= 100:
        console.print("[red]✗ --per-page must be between 1 and 100.[/red]")
        raise typer.Exit(code=1)

    options = SearchOptions(
        query=query,
        type=entity_type,
        artist=artist,
        title=title,
        year=year,
        page=page,
        per_page=per_page,
    )

    async def _search_async():
        config = _load_config(max_requests)
        async with DiscogsClient(config) as client:
            return await client.search(options)

    print_search_results(_run(_search_async()))


@app.command()
def limits():
    """Show the rate limit the client starts with for the current configuration."""
    try:
        config = _load_config()
    except DiscogsCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    print_rate_limit(DiscogsClient(config).rate_limiter)
