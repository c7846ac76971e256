"""Command-line interface for docindex.

Commands:
- ask: Index one text file and ask a question about it
- extract-images: Parse a PDF, write its images and describe them
- ask-pdf: Parse a PDF, describe its images, index everything and ask a question
- info: Show the effective configuration
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from docindex.config.loader import get_default_config_path, load_config
from docindex.config.schema import AppConfig
from docindex.entities import DocumentType, Response
from docindex.observability.logging import bind_command, configure_from_config, get_logger

app = typer.Typer(
    name="docindex",
    help="Index documents and PDF images, then ask questions about them",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def _fail(command: str, error: Exception) -> None:
    """Log and print an error, then exit with status 1."""
    logger.error("command_failed", command=command, error=str(error), error_type=type(error).__name__)
    console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1)


def _print_response(response: Response, show_sources: bool) -> None:
    console.print(f"\n[bold green]Answer:[/bold green] {response.response}\n")
    if not show_sources:
        return

    for i, source in enumerate(response.source_nodes, 1):
        metadata = source.node.metadata
        label = metadata.get("image_path") or metadata.get("file_path") or source.node.document_id
        page = metadata.get("page_number")
        location = f"{label} (page {page})" if page is not None else label
        console.print(f"[bold cyan]{i}. {location}[/bold cyan] [dim]score {source.score:.4f}[/dim]")
        console.print(f"   {source.node.text[:300]}")


@app.command()
def ask(
    path: Path = typer.Argument(..., help="Text or markdown file to index"),
    question: str = typer.Argument(..., help="Question to answer"),
    top_k: Optional[int] = typer.Option(None, "--top-k", "-k", help="Number of nodes to retrieve"),
    sources: bool = typer.Option(False, "--sources", "-s", help="Show retrieved sources"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Config profile"),
):
    """Index a single document and answer a question about it."""
    asyncio.run(_ask_async(path, question, top_k, sources, config_file, profile))


async def _ask_async(
    path: Path,
    question: str,
    top_k: Optional[int],
    sources: bool,
    config_file: Optional[Path],
    profile: Optional[str],
):
    """Async implementation of ask command."""
    from docindex.pipelines.query import run_document_query

    config = _load_config(config_file, profile)
    bind_command("ask", path=str(path))

    try:
        console.print(f"[cyan]Indexing {path} and asking with {config.llm.provider.value}/{config.llm.model_name}...[/cyan]")
        response = await run_document_query(config, path, question, top_k=top_k)
    except Exception as e:
        _fail("ask", e)

    _print_response(response, sources)


@app.command("extract-images")
def extract_images(
    pdf_path: Path = typer.Argument(..., help="PDF to parse"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Folder for extracted images"),
    describe: bool = typer.Option(True, "--describe/--no-describe", help="Generate alt text for each image"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Config profile"),
):
    """Parse a PDF, write its images to a folder and (optionally) describe them."""
    asyncio.run(_extract_images_async(pdf_path, output_dir, describe, config_file, profile))


async def _extract_images_async(
    pdf_path: Path,
    output_dir: Optional[Path],
    describe: bool,
    config_file: Optional[Path],
    profile: Optional[str],
):
    """Async implementation of extract-images command."""
    from docindex.pipelines.ingestion import IngestionPipeline
    from docindex.providers import create_llm_provider
    from docindex.readers import create_reader

    config = _load_config(config_file, profile)
    bind_command("extract-images", pdf_path=str(pdf_path))
    reader = None
    llm = None

    try:
        reader = create_reader(config.parser)
        llm = create_llm_provider(config.llm, config.azure) if describe else None

        console.print(f"[cyan]Parsing {pdf_path} with {config.parser.reader.value}...[/cyan]")
        result = await IngestionPipeline(config, reader, llm).load_pdf(pdf_path, output_dir, describe=describe)
    except Exception as e:
        _fail("extract-images", e)
    finally:
        if reader is not None:
            await reader.close()
        if llm is not None:
            await llm.close()

    if not result.images:
        console.print(f"[yellow]No images found in {pdf_path} ({result.page_count} page(s))[/yellow]")
        return

    alt_texts = [doc.text for doc in result.documents if doc.doc_type == DocumentType.IMAGE]

    table = Table(title=f"Images extracted from {pdf_path.name}")
    table.add_column("#", style="dim")
    table.add_column("Page", style="cyan")
    table.add_column("Path", style="green")
    if describe:
        table.add_column("Alt text")

    for i, image in enumerate(result.images, 1):
        row = [str(i), str(image.page_number), image.path]
        if describe:
            row.append(alt_texts[i - 1])
        table.add_row(*row)

    console.print(table)
    console.print(f"[green]Extracted {len(result.images)} image(s) from {result.page_count} page(s)[/green]")


@app.command("ask-pdf")
def ask_pdf(
    pdf_path: Path = typer.Argument(..., help="PDF to parse and index"),
    question: str = typer.Argument(..., help="Question to answer"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Folder for extracted images"),
    top_k: Optional[int] = typer.Option(None, "--top-k", "-k", help="Number of nodes to retrieve"),
    sources: bool = typer.Option(False, "--sources", "-s", help="Show retrieved sources"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Config profile"),
):
    """Parse a PDF, describe its images, index pages and images, then answer a question."""
    asyncio.run(_ask_pdf_async(pdf_path, question, output_dir, top_k, sources, config_file, profile))


async def _ask_pdf_async(
    pdf_path: Path,
    question: str,
    output_dir: Optional[Path],
    top_k: Optional[int],
    sources: bool,
    config_file: Optional[Path],
    profile: Optional[str],
):
    """Async implementation of ask-pdf command."""
    from docindex.pipelines.ingestion import run_pdf_query

    config = _load_config(config_file, profile)
    bind_command("ask-pdf", pdf_path=str(pdf_path))

    try:
        console.print(f"[cyan]Parsing, describing and indexing {pdf_path}...[/cyan]")
        response = await run_pdf_query(config, pdf_path, question, image_dir=output_dir, top_k=top_k)
    except Exception as e:
        _fail("ask-pdf", e)

    _print_response(response, sources)


def _mask(secret: Optional[str]) -> str:
    if not secret:
        return "[dim]not set[/dim]"
    return secret[:4] + "****" if len(secret) > 8 else "****"


@app.command()
def info(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Config profile"),
):
    """Show the effective configuration (secrets masked)."""
    config = _load_config(config_file, profile)

    table = Table(title="docindex configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("LLM Provider", config.llm.provider.value)
    table.add_row("LLM Model", config.llm.model_name)
    table.add_row("Temperature", str(config.llm.temperature))
    table.add_row("Embedding Provider", config.embedding.provider.value)
    table.add_row("Embedding Model", config.embedding.model_name)
    table.add_row("Azure Endpoint", config.azure.endpoint or "[dim]not set[/dim]")
    table.add_row("Azure Deployment", config.azure.deployment or "[dim]not set[/dim]")
    table.add_row("Azure Key", _mask(config.azure.key))
    table.add_row("Reader", config.parser.reader.value)
    table.add_row("LlamaCloud Key", _mask(config.parser.llama_cloud.api_key))
    table.add_row("Image Folder", str(config.parser.image_dir))
    table.add_row("Vector Store", config.vector_store.store_type.value)
    table.add_row("Similarity Top K", str(config.query.similarity_top_k))
    table.add_row("Log Level", config.logging.level.value)

    console.print(table)


def _load_config(config_file: Optional[Path], profile: Optional[str] = None) -> AppConfig:
    """Load configuration and setup logging."""
    if config_file is None:
        config_file = get_default_config_path()

    config = load_config(config_file, profile=profile, env_file=Path.cwd() / ".env")
    configure_from_config(config.logging)

    return config


if __name__ == "__main__":
    app()
