"""
CLI commands for running the API and managing the knowledge base.
"""

import asyncio
import logging
from pathlib import Path
from typing import Tuple

import click
from rich.console import Console
from rich.table import Table

from .components.document_processing.processor import DocumentProcessor, guess_mime_type
from .components.vector_store import create_vector_store
from .config.settings import Settings, load_settings
from .models.records import ScoredChunk
from .services.embeddings import OpenAIClient
from .services.retriever import RetrievalService
from .utils.errors import KnowledgeBaseError
from .utils.logging_config import setup_logger
from .utils.text import truncate_text

logger = logging.getLogger(__name__)
console = Console()

def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]

def display_results(query: str, results: Tuple[ScoredChunk, ...]) -> None:
    """Print search hits as a table."""
    table = Table(
        title=f"Results for: {truncate_text(query, 60)}",
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Similarity", justify="right", style="cyan", no_wrap=True)
    table.add_column("Document", justify="right", style="green")
    table.add_column("Chunk", justify="right", style="blue")
    table.add_column("Content", style="white", width=70)

    for result in results:
        table.add_row(
            f"{result.similarity:.3f}",
            str(result.document_id),
            str(result.chunk_id),
            truncate_text(result.content, 200)
        )
    console.print(table)

@click.group()
@click.option('--log-level', default=None, help='Override LOG_LEVEL')
@click.pass_context
def cli(ctx: click.Context, log_level: str):
    """Support bot knowledge base: ingestion, search and API server."""
    try:
        settings = load_settings()
    except KnowledgeBaseError as e:
        raise click.ClickException(str(e))
    setup_logger(
        "supportkb",
        level=log_level or settings.app.log_level,
        logs_dir=settings.app.log_dir
    )
    ctx.obj = {"settings": settings}

@cli.command()
@click.option('--host', default='0.0.0.0', help='Host to bind the server to')
@click.option('--port', default=8000, type=int, help='Port to bind the server to')
@click.pass_context
def api(ctx: click.Context, host: str, port: int):
    """Start the API server."""
    import uvicorn
    from .api.app import create_app

    try:
        app = create_app(_settings(ctx))
    except KnowledgeBaseError as e:
        raise click.ClickException(str(e))
    uvicorn.run(app, host=host, port=port)

@cli.command('init-db')
@click.option('--reset', is_flag=True, help='Drop all documents and chunks first')
@click.pass_context
def init_db(ctx: click.Context, reset: bool):
    """Create the pgvector extension, tables and vector index."""
    settings = _settings(ctx)
    if settings.app.vector_store_type != "postgres":
        raise click.ClickException("init-db requires VECTOR_STORE_TYPE=postgres")
    if reset:
        click.confirm("This deletes every document and chunk. Continue?", abort=True)

    async def _init():
        store = create_vector_store(settings)
        try:
            if reset:
                await store.reset()
            else:
                await store.initialize()
        finally:
            await store.close()

    try:
        asyncio.run(_init())
    except KnowledgeBaseError as e:
        raise click.ClickException(str(e))
    console.print("[bold green]✓ Database initialized[/bold green]")

@cli.command()
@click.argument('files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--client-id', default=None, help='Tenant that owns the documents')
@click.pass_context
def ingest(ctx: click.Context, files: Tuple[str, ...], client_id: str):
    """Ingest one or more PDF, DOCX or text files."""
    settings = _settings(ctx)

    async def _ingest():
        client = OpenAIClient(settings.embedding, settings.chat)
        store = create_vector_store(settings)
        await store.initialize()
        processor = DocumentProcessor(client, store, config=settings.processor)
        failures = 0
        try:
            for file_path in files:
                path = Path(file_path)
                if guess_mime_type(path) not in settings.upload.allowed_mime_types:
                    console.print(f"[yellow]Skipping {path.name}: unsupported file type[/yellow]")
                    failures += 1
                    continue
                try:
                    result = await processor.ingest_file(path, client_id=client_id)
                except KnowledgeBaseError as e:
                    console.print(f"[red]✗ {path.name}: {str(e)}[/red]")
                    failures += 1
                    continue

                status = "green" if not (result.failed_chunks or result.degraded) else "yellow"
                console.print(
                    f"[{status}]✓ {path.name}: document {result.document_id}, "
                    f"{result.chunk_count}/{result.total_chunks} chunks stored[/{status}]"
                )
        finally:
            await store.close()
        return failures

    try:
        failures = asyncio.run(_ingest())
    except KnowledgeBaseError as e:
        raise click.ClickException(str(e))
    if failures:
        raise click.ClickException(f"{failures} of {len(files)} files were not ingested")

@cli.command()
@click.argument('query')
@click.option('--k', default=None, type=int, help='Number of chunks to return')
@click.option('--client-id', default=None, help='Only search documents of this tenant')
@click.pass_context
def search(ctx: click.Context, query: str, k: int, client_id: str):
    """Search for chunks similar to QUERY."""
    settings = _settings(ctx)

    async def _search():
        client = OpenAIClient(settings.embedding, settings.chat)
        store = create_vector_store(settings)
        await store.initialize()
        try:
            retriever = RetrievalService(client, store, default_k=settings.chat.retriever_k)
            return await retriever.search(query, k=k, client_id=client_id)
        finally:
            await store.close()

    try:
        results = asyncio.run(_search())
    except (KnowledgeBaseError, ValueError) as e:
        raise click.ClickException(str(e))

    if not results:
        console.print("[yellow]No matching chunks found[/yellow]")
        return
    display_results(query, tuple(results))

@cli.command('list')
@click.option('--client-id', default=None, help='Only documents of this tenant')
@click.pass_context
def list_documents(ctx: click.Context, client_id: str):
    """List documents with their chunk counts."""
    settings = _settings(ctx)

    async def _list():
        store = create_vector_store(settings)
        await store.initialize()
        try:
            return await store.list_documents(client_id=client_id)
        finally:
            await store.close()

    try:
        documents = asyncio.run(_list())
    except KnowledgeBaseError as e:
        raise click.ClickException(str(e))

    table = Table(title="Documents", show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Client", style="blue")
    table.add_column("Chunks", justify="right")
    table.add_column("Created", style="white")
    for document in documents:
        table.add_row(
            str(document.id),
            document.title,
            document.client_id or "-",
            str(document.chunk_count or 0),
            document.created_at.strftime("%Y-%m-%d %H:%M") if document.created_at else "-"
        )
    console.print(table)

@cli.command()
@click.argument('document_id', type=int)
@click.pass_context
def delete(ctx: click.Context, document_id: int):
    """Delete a document and all of its chunks."""
    settings = _settings(ctx)

    async def _delete():
        store = create_vector_store(settings)
        await store.initialize()
        try:
            return await store.delete_document(document_id)
        finally:
            await store.close()

    try:
        deleted = asyncio.run(_delete())
    except KnowledgeBaseError as e:
        raise click.ClickException(str(e))

    if deleted:
        console.print(f"[green]✓ Deleted document {document_id}[/green]")
    else:
        console.print(f"[yellow]Document {document_id} does not exist; nothing deleted[/yellow]")
