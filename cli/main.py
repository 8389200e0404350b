"""Page acquisition CLI — entry-point for backend operations.

Usage:
    python cli/main.py --help

Commands:
    scrape    → acquire a URL and print its extracted content
    report    → acquire a URL and print a marketing report for it
    serve     → run the HTTP API with uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from backend.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer

from backend.log import configure_logging
from backend.scraper.errors import AcquisitionError
from backend.scraper.models import AcquisitionResult
from backend.scraper.orchestrator import acquire_sync

app = typer.Typer(
    name="pagescout",
    help="Adaptive page acquisition CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL."),
) -> None:
    configure_logging(log_level)


def _acquire_or_exit(url: str, command: str) -> AcquisitionResult:
    typer.echo(f"[{command}] Fetching {url!r} …")
    try:
        return acquire_sync(url)
    except AcquisitionError as exc:
        typer.echo(f"[{command}] {exc.kind}: {exc.message}", err=True)
        if exc.suggestion:
            typer.echo(f"[{command}] Suggestion: {exc.suggestion}", err=True)
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Scrape
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Option(..., help="URL to scrape (scheme optional)."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Acquire a URL and print its extracted content to stdout."""
    result = _acquire_or_exit(url, "scrape")

    if as_json:
        payload = {**result.to_dict(), "extractionMethod": result.extraction_method}
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    typer.echo(f"[scrape] URL         : {result.url}")
    typer.echo(f"[scrape] Method      : {result.extraction_method}")
    typer.echo(f"[scrape] Title       : {result.title}")
    typer.echo(f"[scrape] Description : {result.description}")
    typer.echo("")
    typer.echo(result.content)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------
@app.command("report")
def report(
    url: str = typer.Option(..., help="URL to analyse (scheme optional)."),
) -> None:
    """Acquire a URL and print a JSON marketing report for it."""
    from backend.report.marketing import ReportError, generate_marketing_report

    result = _acquire_or_exit(url, "report")
    typer.echo(f"[report] Extracted {result.title!r} via {result.extraction_method}; "
               "generating report …")
    try:
        generated = generate_marketing_report(result.to_dict())
    except ReportError as exc:
        typer.echo(f"[report] Report generation failed: {exc}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(generated, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("backend.api.app:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
