"""Lelang CLI application.

This module provides the command-line interface for Lelang,
built with Typer.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from lelang._version import __version__

app = typer.Typer(
    name="lelang",
    help="Resilient tender listing acquisition",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Lelang v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Lelang - resilient tender listing acquisition.

    Extract. Detect. Retry. Fall back.
    """
    from lelang.core.config import get_settings
    from lelang.core.logging import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)


@app.command()
def fetch(
    year: Annotated[int, typer.Argument(help="Listing year (tahun)")],
    page: Annotated[int, typer.Option(min=1, help="Page number")] = 1,
    limit: Annotated[int, typer.Option(min=1, help="Rows per page")] = 10,
    proxy: Annotated[Optional[str], typer.Option(help="Forward proxy URL")] = None,
    output: Annotated[Optional[Path], typer.Option(help="Write the JSON outcome to this file")] = None,
) -> None:
    """Acquire one page of tender listings."""
    from lelang.acquire.orchestrator import acquire
    from lelang.core.config import get_settings

    settings = get_settings()
    console.print(f"[blue]Fetching {year} page {page} (limit={limit})...[/blue]")

    outcome = asyncio.run(acquire(year, page, limit, proxy or settings.proxy, config=settings))
    body = outcome.to_dict()

    table = Table(title="Acquisition Result")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Success", str(outcome.success))
    if outcome.success:
        data = body["data"].get("data") if isinstance(body["data"], dict) else None
        table.add_row("Strategy", body["strategy"])
        table.add_row("Rows", str(len(data)) if isinstance(data, list) else "raw")
    else:
        table.add_row("Error", body["error"])
    console.print(table)

    if not outcome.success and body["attempts"]:
        console.print("\n[yellow]Strategy failures:[/yellow]")
        for attempt in body["attempts"]:
            console.print(f"  {attempt['strategy']} ({attempt['kind']}): {attempt['message']}")

    if output:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(body, f, indent=2, ensure_ascii=False)
        console.print(f"\n[green]Outcome saved to {output}[/green]")

    if not outcome.success:
        console.print(f"\n[red]Error: {outcome.to_exception().message}[/red]")
        raise typer.Exit(1)


@app.command("extract-token")
def extract_token(
    path: Annotated[Path, typer.Argument(help="Saved HTML page")],
) -> None:
    """Run token extraction and challenge detection on a saved page."""
    from lelang.detect.challenge import ChallengeDetector
    from lelang.detect.tokens import HtmlTokenExtractor

    if not path.exists():
        console.print(f"[red]Error: Path not found: {path}[/red]")
        raise typer.Exit(1)

    html = path.read_text(encoding="utf-8", errors="replace")

    marker = ChallengeDetector().detect(html)
    if marker:
        console.print(f"[yellow]Challenge page detected (marker: {marker!r})[/yellow]")

    match = HtmlTokenExtractor().match(html)
    if match is None:
        console.print("[red]No token found[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Token:[/green] {match.token}")
    console.print(f"[green]Rule:[/green] {match.rule}")


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option(help="Bind host")] = None,
    port: Annotated[Optional[int], typer.Option(help="Bind port")] = None,
) -> None:
    """Start the HTTP API server."""
    import uvicorn

    from lelang.api.app import create_app
    from lelang.core.config import get_settings

    settings = get_settings()
    bind_host = host or settings.api_host
    bind_port = port or settings.api_port

    console.print(f"[blue]Starting Lelang API at http://{bind_host}:{bind_port}[/blue]")
    uvicorn.run(create_app(config=settings), host=bind_host, port=bind_port)


if __name__ == "__main__":
    app()
