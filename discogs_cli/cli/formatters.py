"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from discogs_cli.api.rate_limiter import TokenBucketRateLimiter
from discogs_cli.models.database import ReleaseResponse, SearchResponse
from discogs_cli.storage.config_manager import SENSITIVE_KEYS


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "MissingCredentialsError": [
            "• This endpoint needs credentials that are not configured.",
            "• Run `discogs-cli init --key <KEY> --secret <SECRET>`.",
            "• Or set DISCOGS_CONSUMER_KEY and DISCOGS_CONSUMER_SECRET.",
        ],
        "ReleaseNotFoundError": [
            "• Check the release ID on discogs.com.",
            "• The release may have been merged or removed.",
        ],
        "NotFoundError": [
            "• Check the ID on discogs.com.",
            "• The entry may have been merged or removed.",
        ],
        "RouteNotFoundError": [
            "• This endpoint is not supported by the client.",
            "• Check the endpoint path for typos or extra segments.",
        ],
        "HTTPError": [
            "• The Discogs API rejected the request.",
            "• A 429 status means the rate limit was exceeded; lower --max-requests.",
            "• Please try again in a few minutes.",
        ],
        "TransportError": [
            "• A network connection issue occurred.",
            "• Check your internet connection.",
            "• The Discogs API might be temporarily unavailable.",
        ],
        "MalformedResponseError": [
            "• The API returned data that could not be decoded.",
            "• Run the command with -vv for detailed logs.",
        ],
        "ConfigurationError": [
            "• Check the values in your configuration file.",
            "• Run `discogs-cli --show-config` to inspect it.",
        ],
    }

    # Subclasses fall back to the hints of their closest listed base class
    suggestions = next(
        (
            suggestions_map[cls.__name__]
            for cls in type(error).__mro__
            if cls.__name__ in suggestions_map
        ),
        ["• Run the command with -vv for detailed logs."],
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if key in SENSITIVE_KEYS and value:
            value = "[hidden]"
        elif value is None:
            value = ""
        content += f"{key} = {escape(str(value))}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_release(release: ReleaseResponse):
    """Displays the main details and tracklist of a release."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    artists = "".join(
        f"{a.anv or a.name}{f' {a.join} ' if a.join else ''}" for a in release.artists
    )
    # API strings may contain brackets that Rich would read as markup
    table.add_row("Artist:", escape(artists) if artists else "[dim]Unknown[/dim]")
    table.add_row("Title:", escape(release.title))
    table.add_row("Year:", str(release.year) if release.year else "[dim]?[/dim]")
    table.add_row("Country:", escape(release.country) if release.country else "[dim]?[/dim]")
    table.add_row(
        "Labels:", escape(", ".join(f"{lb.name} ({lb.catno})" for lb in release.labels))
    )
    table.add_row("Formats:", escape(", ".join(f.name for f in release.formats)))
    table.add_row("Genres:", escape(", ".join(release.genres + release.styles)))
    table.add_row("URL:", f"[dim]{escape(release.uri)}[/dim]")

    console.print(
        Panel(
            table,
            title=f"[bold green]Release {release.id}[/bold green]",
            border_style="green",
        )
    )

    if release.tracklist:
        tracks = Table(box=box.SIMPLE)
        tracks.add_column("Pos", style="dim")
        tracks.add_column("Title", style="cyan")
        tracks.add_column("Duration", justify="right", style="green")
        for track in release.tracklist:
            tracks.add_row(
                escape(track.position), escape(track.title), escape(track.duration)
            )
        console.print(tracks)


def print_search_results(response: SearchResponse):
    """Displays a page of search results."""
    console = Console()
    if not response.results:
        console.print("[dim]No results found.[/dim]")
        return

    table = Table(box=box.SIMPLE)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Type", style="magenta")
    table.add_column("Title", style="cyan")
    table.add_column("Year", style="green")
    table.add_column("Country")
    for result in response.results:
        table.add_row(
            str(result.id or ""),
            result.type.value if result.type else "",
            escape(result.title),
            escape(result.year),
            escape(result.country),
        )
    console.print(table)

    if pagination := response.pagination:
        console.print(
            f"[dim]Page {pagination.page} of {pagination.pages} "
            f"({pagination.items} results)[/dim]"
        )


def print_rate_limit(limiter: TokenBucketRateLimiter):
    """Displays the state of the client's rate limiter."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Requests/min:", f"{limiter.limit * 60:.0f}")
    table.add_row("Burst:", str(limiter.burst))
    table.add_row("Available tokens:", f"{limiter.tokens:.1f}")
    table.add_row(
        "Explicit ceiling:",
        str(limiter.max_requests) if limiter.max_requests else "[dim]none[/dim]",
    )

    console.print(
        Panel(table, title="[bold cyan]Rate Limit[/bold cyan]", border_style="cyan")
    )
