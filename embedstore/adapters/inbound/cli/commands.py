"""CLI interface for embedstore.

Every command opens the SQLite snapshot configured in settings, works on an
in-memory index restored from it, and writes it back after mutations.
"""

import json
import os
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ....common.utils import chunk_text
from ....composition.container import build_document_store
from ....config.logging import setup_logging
from ....config.settings import settings
from ....core.domain import Document
from ....core.domain.exceptions import InvalidDocumentError, InvalidFilterError
from ....core.services import DocumentStoreService
from ...common.exception_handler import format_exception_json
from ...outbound.persistence import SQLiteIndexRepository

app = typer.Typer(
    name="embedstore",
    help="embedstore - embedding-indexed document store with filtered semantic search",
    add_completion=False,
)

console = Console(legacy_windows=False)

# Full JSON error panels instead of the one-line summary
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"


def handle_cli_error(exc: Exception) -> None:
    """Print ``exc`` as an error code, message and context lines.

    ``DEBUG=true`` prints the whole structured error, stack trace included.
    """
    error_data = format_exception_json(exc, include_trace=DEBUG_MODE)

    if DEBUG_MODE:
        console.print(
            Panel(
                json.dumps(error_data, indent=2, default=str),
                title=f"[bold red]{error_data['error']['type']}[/]",
                border_style="red",
            )
        )
        return

    error = error_data["error"]
    console.print(f"\n[red]Error [{error['code']}]:[/] {escape(error['message'])}", highlight=False)
    for key, value in error_data.get("context", {}).items():
        console.print(f"  [dim]{key}:[/] {escape(str(value))}", highlight=False)
    console.print("[dim]Set DEBUG=true for full details[/]")


def open_store() -> tuple[DocumentStoreService, SQLiteIndexRepository]:
    """Build the store from settings and restore the saved snapshot into it."""
    settings.ensure_directories()
    store = build_document_store(settings)
    repository = SQLiteIndexRepository(settings.resolved_snapshot_path)
    repository.load_into(store.index)
    return store, repository


def _parse_filter(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidFilterError("Filter is not valid JSON", cause=e, context={"filter": raw}) from e
    if not isinstance(parsed, dict):
        raise InvalidFilterError("Filter must be a JSON object", context={"filter": raw})
    return parsed


def read_jsonl(path: Path) -> list[Document]:
    """Read one document per line: ``{"content": ..., "metadata": {...}, "id": ...}``.

    ``text`` is accepted in place of ``content``. Blank lines are skipped.
    """
    documents = []
    with path.open(encoding="utf-8-sig") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise InvalidDocumentError(
                    f"Invalid JSON on line {line_no}",
                    cause=e,
                    context={"path": str(path), "line": line_no},
                ) from e
            content = record.get("content", record.get("text")) if isinstance(record, dict) else None
            if not isinstance(content, str) or not content.strip():
                raise InvalidDocumentError(
                    f"Line {line_no} has no content",
                    context={"path": str(path), "line": line_no},
                )
            documents.append(
                Document(
                    content=content,
                    metadata=record.get("metadata") or {},
                    doc_id=record.get("id"),
                )
            )
    return documents


def read_text(path: Path, chunk_size: int, chunk_overlap: int) -> list[Document]:
    """Read a text file as one document, or as chunks when ``chunk_size > 0``.

    Chunk ids are ``<file name>:<chunk number>`` so re-adding a file replaces
    its chunks.
    """
    text = path.read_text(encoding="utf-8-sig")
    if chunk_size <= 0:
        return [Document(content=text, metadata={"source": path.name}, doc_id=path.name)]

    return [
        Document(
            content=chunk,
            metadata={"source": path.name, "chunk": i},
            doc_id=f"{path.name}:{i}",
        )
        for i, chunk in enumerate(chunk_text(text, chunk_size, chunk_overlap))
    ]


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level")) -> None:
    """Configure logging for every command."""
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_file=settings.log_file,
        json_format=settings.log_json,
    )


@app.command()
def add(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSONL or text file"),
    chunk_size: int = typer.Option(0, help="Split text files into chunks of this size (0 = off)"),
    chunk_overlap: int = typer.Option(200, help="Characters shared by consecutive chunks"),
) -> None:
    """Embed documents from a file and save them to the snapshot."""
    try:
        if path.suffix.lower() in (".jsonl", ".ndjson"):
            documents = read_jsonl(path)
        else:
            documents = read_text(path, chunk_size, chunk_overlap)

        store, repository = open_store()
        with console.status("[bold green]Embedding...[/]"):
            ids = store.add_documents(documents)
        total = repository.save(store.index)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    console.print(f"[green]Added {len(ids)} documents[/] ({total} in index)")


@app.command()
def search(
    query: str = typer.Argument(..., help="Natural-language query"),
    k: int = typer.Option(4, "--k", "-k", help="Number of results"),
    filter: str | None = typer.Option(None, "--filter", "-f", help="Metadata filter as JSON"),
    mmr: bool = typer.Option(False, "--mmr", help="Diversify results with MMR"),
    lambda_mult: float | None = typer.Option(
        None, "--lambda", help="MMR relevance weight (1 = relevance only, 0 = diversity only)"
    ),
    fetch_k: int | None = typer.Option(None, help="MMR candidates fetched before re-ranking"),
) -> None:
    """Search the snapshot and print the best matches."""
    try:
        parsed_filter = _parse_filter(filter)
        store, _ = open_store()
        if mmr:
            results = store.max_marginal_relevance_search_with_score(
                query, k, parsed_filter, fetch_k=fetch_k, lambda_mult=lambda_mult
            )
        else:
            results = store.similarity_search_with_score(query, k, parsed_filter)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No matching documents.[/]")
        return

    table = Table(title=f"Results for: {query}")
    table.add_column("#", justify="right")
    table.add_column("id", style="cyan")
    table.add_column("score", justify="right")
    table.add_column("content")
    table.add_column("metadata", style="dim")
    for rank, result in enumerate(results, start=1):
        doc = result.document
        excerpt = doc.content if len(doc.content) <= 80 else doc.content[:77] + "..."
        table.add_row(
            str(rank),
            doc.doc_id,
            f"{result.score:.4f}",
            excerpt,
            json.dumps(doc.metadata, sort_keys=True),
        )
    console.print(table)


@app.command()
def delete(ids: list[str] = typer.Argument(..., help="Document ids to delete")) -> None:
    """Delete documents by id."""
    try:
        store, repository = open_store()
        removed = store.delete_documents(ids)
        repository.save(store.index)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    console.print(f"Deleted {removed} of {len(ids)} documents")


@app.command()
def stats() -> None:
    """Show index size and configuration."""
    try:
        store, _ = open_store()
        info = store.get_stats()
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    console.print("[bold]embedstore status[/]\n")
    console.print(f"  snapshot: {settings.resolved_snapshot_path}")
    for key, value in info.items():
        console.print(f"  {key}: {value}")
    if info["count"] == 0:
        console.print("\n[yellow]Index is empty. Run 'embedstore add <file>' to add documents.[/]")


@app.command()
def clear(yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")) -> None:
    """Remove every document from the snapshot."""
    if not yes and not typer.confirm("Delete all documents?"):
        raise typer.Abort()
    try:
        store, repository = open_store()
        removed = store.index.count()
        store.index.clear()
        repository.save(store.index)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    console.print(f"Cleared {removed} documents")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("embedstore.adapters.inbound.api.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
