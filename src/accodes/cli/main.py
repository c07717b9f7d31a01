import json
import os
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from accodes.core.classify import classify_page
from accodes.core.config import get_pipeline_config
from accodes.core.errors import AccodesError
from accodes.core.logging_config import configure_logging
from accodes.core.models import RawPage
from accodes.core.pipeline import ingest_pdf
from accodes.core.queries import get_ingest_stats, get_most_relevant_pages, get_page_text, list_documents
from accodes.core.schema import upgrade_schema
from accodes.core.storage import InMemoryPageStore, PostgresPageStore

app = typer.Typer(help="accodes: accessibility code PDF ingestion")
console = Console()

# Initialize structured logging
configure_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    json_logs=os.getenv("JSON_LOGS", "false").lower() == "true"
)


def _load_config(batch_size: Optional[int] = None):
    try:
        return get_pipeline_config(batch_size)
    except AccodesError as e:
        console.print(f"[red]Configuration error:[/] {e}")
        raise typer.Exit(1)


def _show_pages(store: InMemoryPageStore) -> None:
    table = Table(box=box.SIMPLE_HEAD, header_style="bold white", row_styles=["", "dim"])
    table.add_column("PAGE", justify="right", no_wrap=True)
    table.add_column("SECTION", no_wrap=True, style="bold cyan")
    table.add_column("TYPES", no_wrap=True)
    table.add_column("KW", justify="right", no_wrap=True)
    table.add_column("FIG", justify="center", no_wrap=True)
    table.add_column("HEADINGS", max_width=50)

    for row in store.rows():
        table.add_row(
            str(row["page_number"]),
            row["section_number"] or "-",
            ", ".join(_json_list(row["content_type"])),
            str(row["keyword_count"]),
            "✓" if row["has_figure"] else "",
            "; ".join(_json_list(row["section_headings"]))[:80],
        )
    console.print(table)


def _json_list(value: str) -> list:
    return json.loads(value) if value else []


@app.command()
def ingest(
    pdf_file: str,
    batch_size: Optional[int] = typer.Option(None, help="Pages per storage transaction (default: ACCODES_BATCH_SIZE or 10)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Classify into memory only; nothing is written to the database"),
):
    """Ingest one PDF: classify every page and load it in batched transactions."""
    pdf_path = Path(pdf_file)
    if not pdf_path.exists():
        console.print(f"[red]Error:[/] File {pdf_file} does not exist")
        raise typer.Exit(1)
    if pdf_path.suffix.lower() != ".pdf":
        console.print(f"[red]Error:[/] Expected a .pdf file, got {pdf_path.suffix or 'no extension'}")
        raise typer.Exit(1)

    if batch_size is not None and batch_size < 1:
        console.print("[red]Error:[/] --batch-size must be a positive integer")
        raise typer.Exit(1)

    config = _load_config(batch_size)
    size = config.batch_size

    console.print(f"[bold]Ingesting:[/] {pdf_path} ([cyan]{size}[/] pages per batch)")

    try:
        if dry_run:
            store = InMemoryPageStore()
            result = ingest_pdf(pdf_path, store, batch_size=size)
            _show_pages(store)
        else:
            with PostgresPageStore.open(config.database_url) as store:
                with console.status("[bold green]Processing pages..."):
                    result = ingest_pdf(pdf_path, store, batch_size=size)
    except AccodesError as e:
        console.print(f"[red]Error during ingestion:[/] {e}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error reading PDF:[/] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✅ Ingestion complete![/]")
    console.print(f"[bold]Document id:[/] {result.document_id}")
    console.print(f"[bold]Pages loaded:[/] {result.pages_loaded}")
    console.print(f"[bold]Batches committed:[/] {result.batches_committed}")
    console.print(f"[bold]Elapsed:[/] {result.elapsed_ms / 1000:.2f}s")


@app.command("init-db")
def init_db(
    sql: bool = typer.Option(False, "--sql", help="Print the DDL instead of applying it"),
):
    """Create or upgrade the documents/page_content schema."""
    config = _load_config()
    try:
        upgrade_schema(config.database_url, sql_only=sql)
    except Exception as e:
        console.print(f"[red]Error applying schema:[/] {e}")
        raise typer.Exit(1)
    if not sql:
        console.print("[green]✅ Schema is up to date[/]")


@app.command()
def classify(
    text_file: str,
    page_number: int = typer.Option(1, min=1, help="Page number recorded in the annotation"),
):
    """Classify the text of a single page stored in a UTF-8 text file."""
    path = Path(text_file)
    if not path.exists():
        console.print(f"[red]Error:[/] File {text_file} does not exist")
        raise typer.Exit(1)

    annotation = classify_page(RawPage(page_number=page_number, text=path.read_text(encoding="utf-8")))
    console.print_json(annotation.model_dump_json(exclude={"raw_text"}))


@app.command()
def top(
    limit: int = typer.Option(5, help="Maximum number of pages"),
    min_keywords: int = typer.Option(1, help="Minimum distinct keywords per page"),
):
    """Show the pages most relevant to accessibility compliance."""
    config = _load_config()
    try:
        pages = get_most_relevant_pages(config.database_url, limit=limit, min_keywords=min_keywords)
    except Exception as e:
        console.print(f"[red]Error querying pages:[/] {e}")
        raise typer.Exit(1)

    if not pages:
        console.print("[yellow]No pages match.[/]")
        return

    table = Table(box=box.SIMPLE_HEAD, header_style="bold white")
    table.add_column("DOC", justify="right")
    table.add_column("PAGE", justify="right")
    table.add_column("SECTION", style="bold cyan")
    table.add_column("KW", justify="right")
    table.add_column("KEYWORDS", max_width=60)
    for page in pages:
        table.add_row(
            str(page["document_id"]),
            str(page["page_number"]),
            page["section_number"] or "-",
            str(page["keyword_count"]),
            ", ".join(page["keywords"]),
        )
    console.print(table)


@app.command()
def page(
    page_number: int,
    document_id: Optional[int] = typer.Option(None, help="Restrict to one document"),
):
    """Print the stored raw text of a page."""
    config = _load_config()
    try:
        rows = get_page_text(config.database_url, page_number, document_id=document_id)
    except Exception as e:
        console.print(f"[red]Error querying page:[/] {e}")
        raise typer.Exit(1)

    if not rows:
        console.print(f"[yellow]Page {page_number} not found.[/]")
        raise typer.Exit(1)

    for row in rows:
        console.rule(f"document {row['document_id']} · page {row['page_number']}")
        console.print(row["raw_text"], markup=False, highlight=False)


@app.command()
def status():
    """Show document and page statistics."""
    config = _load_config()
    try:
        stats = get_ingest_stats(config.database_url)
        documents = list_documents(config.database_url)
    except Exception as e:
        console.print(f"[red]Error getting status:[/] {e}")
        raise typer.Exit(1)

    console.print("[bold]📊 Documents & Pages:[/]")
    console.print(f"  Documents: {stats['total_documents']}")
    console.print(f"  Pages: {stats['total_pages']}")
    console.print(f"  Pages with figures: {stats['figure_pages']}")
    console.print(f"  Distinct sections: {stats['unique_sections']}")
    console.print(f"  Avg keywords per page: {stats['avg_keywords_per_page']:.2f}")
    console.print(f"  Avg mandatory terms per page: {stats['avg_mandatory_per_page']:.2f}")
    console.print(f"  Avg exception terms per page: {stats['avg_exception_per_page']:.2f}")
    if stats["content_types"]:
        console.print()
        console.print("[bold]🏷️  Content types:[/]")
        for tag, count in sorted(stats["content_types"].items()):
            console.print(f"  {tag}: {count}")

    if documents:
        console.print()
        table = Table(title="Documents", box=box.SIMPLE_HEAD, header_style="bold white")
        table.add_column("ID", justify="right")
        table.add_column("FILE")
        table.add_column("PAGES", justify="right")
        table.add_column("PROCESSED")
        for doc in documents:
            table.add_row(
                str(doc["id"]),
                doc["file_name"],
                str(doc["total_pages"]),
                doc["processed_at"].strftime("%Y-%m-%d %H:%M:%S") if doc["processed_at"] else "-",
            )
        console.print(table)


if __name__ == "__main__":
    app()
