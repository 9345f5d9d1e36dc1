"""Command-line interface for DocChat using Click."""

import asyncio
from pathlib import Path

import click
from dotenv import load_dotenv

from docchat.client.cli_helpers import (
    ensure_database_exists,
    format_search_result,
    load_services,
)
from docchat.constants import DEFAULT_TOP_K
from docchat.errors import DocChatError, DocumentNotFoundError

# Load environment variables
load_dotenv()


@click.command()
@click.argument(
    "pdf_files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
)
@click.option("--user-id", required=True, help="User that owns the ingested documents")
@click.option(
    "--name",
    "document_name",
    type=str,
    default=None,
    help="Display name for the document (default: the file name; single file only)",
)
@click.option(
    "--create-database",
    "create_database_flag",
    is_flag=True,
    default=False,
    help="Create the RavenDB database if it doesn't exist",
)
def ingest(
    pdf_files: tuple[Path, ...],
    user_id: str,
    document_name: str | None,
    create_database_flag: bool,
) -> None:
    """Ingest one or more PDF files for a user.

    Example:
        docchat-ingest report.pdf --user-id alice
        docchat-ingest a.pdf b.pdf --user-id alice --create-database
    """
    if document_name and len(pdf_files) > 1:
        raise click.UsageError("--name can only be used with a single file")

    ensure_database_exists(create_if_missing=create_database_flag)
    services = load_services()

    failures = 0
    for pdf_path in pdf_files:
        name = document_name or pdf_path.name
        try:
            result = asyncio.run(
                services.ingestion.ingest(pdf_path.read_bytes(), user_id, name)
            )
            click.echo(
                f"  ✓ Ingested {pdf_path.name}: {result.chunk_count} chunks "
                f"(document {result.document_id})"
            )
        except DocChatError as e:
            failures += 1
            click.echo(f"  ✗ Error ingesting {pdf_path.name} ({e.category}): {e}", err=True)

    if failures:
        click.echo(f"\n✗ {failures} of {len(pdf_files)} file(s) failed", err=True)
        raise click.Abort()
    click.echo(f"✓ Ingestion complete! Ingested {len(pdf_files)} file(s).")


@click.command()
@click.argument("question", type=str)
@click.option("--user-id", required=True, help="User whose documents are searched")
@click.option("--top-k", type=int, default=DEFAULT_TOP_K, help="Number of chunks to use")
@click.option("--model", type=str, default=None, help="Completion model id")
def ask(question: str, user_id: str, top_k: int, model: str | None) -> None:
    """Answer QUESTION from a user's documents.

    Example:
        docchat-ask "What does the report conclude?" --user-id alice
    """
    ensure_database_exists()
    services = load_services()

    try:
        answer = asyncio.run(
            services.retrieval.answer(question, user_id, top_k=top_k, model=model)
        )
    except DocChatError as e:
        click.echo(f"✗ Error: {e}", err=True)
        raise click.Abort()

    click.echo(answer.text)
    if answer.sources:
        click.echo(f"\nSources: {', '.join(answer.sources)}")
    if answer.status == "failed":
        raise click.Abort()


@click.command()
@click.argument("query", type=str)
@click.option("--user-id", required=True, help="User whose documents are searched")
@click.option(
    "--top-k", type=int, default=DEFAULT_TOP_K, help="Number of results to return (default: 5)"
)
def search(query: str, user_id: str, top_k: int) -> None:
    """Search a user's documents using vector search.

    QUERY is the text to search for.

    Example:
        docchat-search "quarterly revenue" --user-id alice --top-k 3
    """
    ensure_database_exists()
    services = load_services()

    click.echo(f"🔍 Searching for: '{query}'")
    click.echo(f"   Returning top {top_k} results...\n")

    try:
        matches = asyncio.run(services.retrieval.search(query, user_id, top_k))
    except DocChatError as e:
        click.echo(f"✗ Error ({e.category}): {e}", err=True)
        raise click.Abort()

    if not matches:
        click.echo("No results found.")
        return

    click.echo(f"✅ Found {len(matches)} result(s):\n")
    for i, match in enumerate(matches, 1):
        click.echo(format_search_result(i, match))


@click.command()
@click.option("--user-id", required=True, help="User whose documents are listed")
def documents(user_id: str) -> None:
    """List a user's documents, newest first.

    Example:
        docchat-documents --user-id alice
    """
    ensure_database_exists()
    services = load_services()

    try:
        docs = services.documents.list_documents(user_id)
    except DocChatError as e:
        click.echo(f"✗ Error: {e}", err=True)
        raise click.Abort()

    if not docs:
        click.echo(f"No documents found for user '{user_id}'")
        return

    click.echo(f"📂 {len(docs)} document(s):\n")
    for doc in docs:
        click.echo(f"  {doc.id}  {doc.name}  ({doc.chunk_count} chunks, {doc.created_at})")


@click.command()
@click.argument("document_id", type=str)
@click.option("--user-id", required=True, help="User that owns the document")
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip confirmation prompt")
def delete_document(document_id: str, user_id: str, yes: bool) -> None:
    """Delete DOCUMENT_ID and all of its indexed chunks.

    Example:
        docchat-delete-document 1a2b3c4d... --user-id alice
        docchat-delete-document 1a2b3c4d... --user-id alice --yes
    """
    ensure_database_exists()
    services = load_services()

    if not yes and not click.confirm(
        f"Delete document '{document_id}' for user '{user_id}'?", default=False
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        removed = services.documents.delete_document(document_id, user_id)
    except DocumentNotFoundError:
        click.echo(f"✗ Document '{document_id}' not found for user '{user_id}'", err=True)
        raise click.Abort()
    except DocChatError as e:
        click.echo(f"✗ Error deleting document: {e}", err=True)
        raise click.Abort()

    click.echo(f"✓ Deleted document '{document_id}' ({removed} chunks removed)")


if __name__ == "__main__":
    ingest()
