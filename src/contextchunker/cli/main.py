import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from pydantic import ValidationError

from ..core import config
from ..core.config import Settings
from ..core.logging import log, setup_logging
from ..core.models import ChunkOptions

app = typer.Typer(add_completion=False, help="Contextchunker CLI")


@app.callback()
def _init(
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        help="Config file (.contextchunker.yaml auto-discovered)",
    ),
    log_format: Optional[str] = typer.Option(
        None, "--log-format", help="Log format: json|plain|auto"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log chunking internals"),
) -> None:
    config.SETTINGS = Settings.load_config(config_file)
    setup_logging(
        format_type=log_format or config.SETTINGS.LOG_FORMAT,  # type: ignore[arg-type]
        level="DEBUG" if verbose else "INFO",
    )


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        typer.echo(f"❌ File not found: {source}", err=True)
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8", errors="replace")


def _load_documents(source: str) -> List[Any]:
    """Read a JSON array, a single JSON object, or NDJSON of documents."""
    raw = _read_input(source)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        try:
            return [json.loads(line) for line in raw.splitlines() if line.strip()]
        except json.JSONDecodeError as e:
            typer.echo(f"❌ Invalid JSON/NDJSON input: {e}", err=True)
            raise typer.Exit(1) from e
    return data if isinstance(data, list) else [data]


@app.command()
def version() -> None:
    from .. import __version__

    typer.echo(__version__)


@app.command()
def sanitize(
    source: str = typer.Argument(..., help="Text file to sanitize ('-' for stdin)"),
) -> None:
    """Print the storage-safe version of a text file."""
    from ..chunking.sanitize import sanitize_text

    typer.echo(sanitize_text(_read_input(source)))


@app.command()
def chunk(
    source: str = typer.Argument(..., help="Text or markdown file to chunk ('-' for stdin)"),
    chunk_size: Optional[int] = typer.Option(
        None, "--chunk-size", help="Maximum characters per chunk"
    ),
    chunk_overlap: Optional[int] = typer.Option(
        None, "--chunk-overlap", help="Characters shared by consecutive chunks"
    ),
    preserve_code_blocks: bool = typer.Option(
        True,
        "--preserve-code-blocks/--no-preserve-code-blocks",
        help="Keep fenced code blocks whole",
    ),
    preserve_sections: bool = typer.Option(
        True,
        "--preserve-sections/--no-preserve-sections",
        help="Keep header/step sections together",
    ),
    metadata: Optional[str] = typer.Option(
        None, "--metadata", help="JSON object merged into every chunk's metadata"
    ),
    output_format: str = typer.Option(
        "json", "--format", help="Output format: json (NDJSON) or table"
    ),
) -> None:
    """
    Split a document into context-preserving chunks for a vector store.

    Example:
        contextchunker chunk docs/setup.md                    # Use defaults (2000/300 chars)
        contextchunker chunk docs/setup.md --chunk-size 1000  # Smaller chunks
    """
    from ..chunking.engine import process_document

    option_values: Dict[str, Any] = {
        "preserve_code_blocks": preserve_code_blocks,
        "preserve_sections": preserve_sections,
    }
    if chunk_size is not None:
        option_values["chunk_size"] = chunk_size
    if chunk_overlap is not None:
        option_values["chunk_overlap"] = chunk_overlap

    try:
        options = ChunkOptions(**option_values)
    except ValidationError as e:
        typer.echo(f"❌ Invalid chunking options: {e}", err=True)
        raise typer.Exit(1) from e

    doc_metadata: Dict[str, Any] = {"source": source}
    if metadata:
        try:
            extra = json.loads(metadata)
        except json.JSONDecodeError as e:
            typer.echo(f"❌ --metadata is not valid JSON: {e}", err=True)
            raise typer.Exit(1) from e
        if not isinstance(extra, dict):
            typer.echo("❌ --metadata must be a JSON object", err=True)
            raise typer.Exit(1)
        doc_metadata.update(extra)

    text = _read_input(source)
    try:
        chunks = process_document({"text": text, "metadata": doc_metadata}, options)
    except ValueError as e:
        typer.echo(f"❌ Chunking failed: {e}", err=True)
        raise typer.Exit(1) from e

    log.info("cli.chunk", source=source, chunks=len(chunks))

    if output_format == "table":
        from rich.console import Console
        from rich.table import Table

        table = Table(title=f"Chunks: {source}", show_header=True, header_style="bold blue")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Chars", justify="right", style="green")
        table.add_column("Type", style="cyan", no_wrap=True)
        table.add_column("Complete", style="yellow")
        table.add_column("Title", style="white")
        table.add_column("Preview", style="white", min_width=20)

        for item in chunks:
            meta = item.metadata
            preview = item.text[:60] + ("..." if len(item.text) > 60 else "")
            table.add_row(
                str(meta["chunk_index"]),
                str(len(item.text)),
                meta["content_type"],
                "yes" if meta["is_complete"] else "no",
                (meta["context_title"] or "")[:40],
                preview,
            )
        Console().print(table)
    elif output_format == "json":
        for item in chunks:
            typer.echo(json.dumps({"text": item.text, "metadata": item.metadata}))
    else:
        typer.echo(f"❌ Unknown format: {output_format}", err=True)
        raise typer.Exit(1)


@app.command()
def validate(
    source: str = typer.Argument(
        ..., help="JSON array or NDJSON of {text, metadata} documents ('-' for stdin)"
    ),
    max_chunk_chars: Optional[int] = typer.Option(
        None, "--max-chunk-chars", help="Largest acceptable chunk in characters"
    ),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size"),
    chunk_overlap: Optional[int] = typer.Option(None, "--chunk-overlap"),
) -> None:
    """
    Validate a knowledge base before uploading it to a vector store.

    Exits with code 1 when any document or chunk has an issue.
    """
    from ..chunking.verify import validate_documents

    option_values: Dict[str, Any] = {}
    if chunk_size is not None:
        option_values["chunk_size"] = chunk_size
    if chunk_overlap is not None:
        option_values["chunk_overlap"] = chunk_overlap
    try:
        options = ChunkOptions(**option_values)
    except ValidationError as e:
        typer.echo(f"❌ Invalid chunking options: {e}", err=True)
        raise typer.Exit(1) from e

    documents = _load_documents(source)
    report = validate_documents(documents, options, max_chunk_chars=max_chunk_chars)

    typer.echo(f"📊 Documents validated: {report.documents}")
    typer.echo(f"📦 Total chunks: {report.total_chunks}")
    typer.echo(f"⚠️ Total issues found: {len(report.issues)}")

    if report.passed:
        typer.echo("✅ Knowledge base validation PASSED")
        return

    typer.echo("❌ Knowledge base validation FAILED")
    for number, issue in enumerate(report.issues, start=1):
        location = f"Document {issue.doc_index + 1}"
        if issue.chunk_index is not None:
            location += f", Chunk {issue.chunk_index + 1}"
        typer.echo(f"   {number}. {location}: {issue.message}")
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
