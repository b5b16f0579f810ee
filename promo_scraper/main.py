import asyncio
import json
from typing import List, Optional

import typer
from rich.console import Console
from rich.json import JSON
from rich.table import Table

from .chunker import split_into_chunks
from .combiner import combine_selectors
from .config import get_settings
from .core import BatchCoordinator, parse_scrape_request
from .errors import SelectorGenerationError, ValidationError
from .llm import InferenceClient
from .logging_utils import configure_logging
from .models import FieldSelectorMap, PromotionRecord
from .parser import RecordExtractor, StaticDocument
from .rate_limiter import RateLimiter
from .sanitizer import sanitize_html


app = typer.Typer(help="Extract promotions from retail pages with LLM-inferred selectors")
console = Console()


def _print_records(records: List[PromotionRecord], limit: Optional[int] = None) -> None:
    table = Table(show_lines=False)
    for column in ("titulo", "descripcion", "medioPago", "fecha", "condiciones", "url"):
        table.add_column(column, overflow="fold")
    shown = records if limit is None else records[:limit]
    for record in shown:
        wire = record.as_wire()
        table.add_row(*(wire[c] for c in ("titulo", "descripcion", "medioPago", "fecha", "condiciones", "url")))
    console.print(table)
    if limit is not None and len(records) > limit:
        console.print(f"... and {len(records) - limit} more promotions")


@app.command()
def scrape(
    urls: List[str] = typer.Argument(..., help="Pages to scrape (1 to 10)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output JSON file path"),
    limit: int = typer.Option(20, "--limit", "-n", help="Promotions to print"),
):
    """Scrape promotions from one or more URLs."""
    configure_logging()

    try:
        request = parse_scrape_request({"urls": urls})
    except ValidationError as e:
        console.print("[red]Invalid request:[/red]")
        console.print(JSON(json.dumps(e.details, default=str)))
        raise typer.Exit(2)

    try:
        coordinator = BatchCoordinator(settings=get_settings())
    except SelectorGenerationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    try:
        result = asyncio.run(coordinator.run(request.url_strings))
    except SelectorGenerationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    console.print(
        f"\n[green]Found {len(result.promotions)} promotions[/green] "
        f"in {result.execution_time_ms} ms"
    )
    for error in result.errors:
        console.print(f"[red]✗ {error}[/red]")

    if output:
        with open(output, "w") as f:
            json.dump(result.as_response(), f, indent=2, ensure_ascii=False)
        console.print(f"[green]Saved to {output}[/green]")
    elif result.promotions:
        _print_records(result.promotions, limit)


@app.command()
def selectors(
    html_file: str = typer.Argument(..., help="Saved HTML page"),
):
    """Infer the combined selector map for a saved HTML page."""
    configure_logging()
    settings = get_settings()

    with open(html_file) as f:
        html = f.read()

    try:
        client = InferenceClient(
            RateLimiter(settings.max_requests_per_minute, settings.rate_limit_delay_seconds),
            settings=settings,
        )
    except SelectorGenerationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    sanitized = sanitize_html(html)
    chunks = split_into_chunks(sanitized, settings.max_chunk_length)
    console.print(f"[cyan]{len(html)} chars -> {len(sanitized)} sanitized, {len(chunks)} chunk(s)[/cyan]")

    try:
        results = asyncio.run(client.infer_chunks(chunks))
    except SelectorGenerationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)
    for r in results:
        if not r.ok:
            console.print(f"[yellow]Skipped: {r.error}[/yellow]")

    combined = combine_selectors(r.selectors for r in results if r.ok)
    console.print("\n[green]Combined selectors:[/green]")
    console.print(JSON(json.dumps(combined.model_dump(by_alias=True))))


@app.command()
def extract(
    html_file: str = typer.Argument(..., help="Saved HTML page"),
    selector_json: str = typer.Option(..., "--selectors", "-s", help="Inline JSON selector map"),
    url: str = typer.Option("", "--url", help="URL to record on each promotion"),
):
    """Apply a selector map to a saved HTML page, without a browser or LLM."""
    with open(html_file) as f:
        html = f.read()

    selector_map = FieldSelectorMap.model_validate(json.loads(selector_json))
    extractor = RecordExtractor(selector_map)
    records = asyncio.run(extractor.extract(StaticDocument(html, url=url)))

    console.print(f"[green]Extracted {len(records)} promotions[/green]")
    if records:
        _print_records(records)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port", "-p"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("promo_scraper.api:build_default_app", factory=True, host=host, port=port)


if __name__ == "__main__":
    app()
