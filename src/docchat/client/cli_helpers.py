"""Helper functions for CLI commands."""

import os

import click

from docchat.constants import CONTENT_PREVIEW_LENGTH
from docchat.service.factory import (
    PERSISTENT_BACKEND,
    Services,
    build_services,
    persistent_backend_config,
)
from docchat.service.models import QueryMatch


def uses_ravendb() -> bool:
    """Whether either storage backend is RavenDB, the default for CLI commands."""
    return "ravendb" in (
        os.getenv("VECTOR_BACKEND") or PERSISTENT_BACKEND,
        os.getenv("METADATA_BACKEND") or PERSISTENT_BACKEND,
    )


def ensure_database_exists(create_if_missing: bool = False) -> bool:
    """Check the RavenDB database exists when a RavenDB backend is configured.

    Args:
        create_if_missing: If True, attempt to create the database

    Returns:
        True if no database is needed, or it exists (or was created)

    Raises:
        click.Abort: If database doesn't exist and can't be created
    """
    if not uses_ravendb():
        return True

    from docchat.service.database import create_database, database_exists

    if database_exists():
        return True

    if create_if_missing:
        click.echo("Database does not exist. Creating database...")
        try:
            create_database()
            click.echo("✓ Database created successfully!")
            return True
        except Exception as e:
            click.echo(f"✗ Failed to create database: {e}", err=True)
            click.echo("\nPlease ensure RavenDB is running and accessible.", err=True)
            raise click.Abort()

    click.echo("✗ Error: Database does not exist!", err=True)
    click.echo("\nPlease create the database first using:", err=True)
    click.echo("  docchat-ingest <file.pdf> --user-id <id> --create-database", err=True)
    raise click.Abort()


def load_services() -> Services:
    """Build the pipelines on persistent backends.

    Configuration errors, including an in-memory backend, become a CLI abort.
    """
    try:
        return build_services(persistent_backend_config())
    except ValueError as e:
        click.echo(f"✗ Configuration error: {e}", err=True)
        raise click.Abort()


def format_search_result(
    index: int, match: QueryMatch, max_length: int = CONTENT_PREVIEW_LENGTH
) -> str:
    """Format a search match for display.

    Args:
        index: Result number (1-based)
        match: The match to show
        max_length: Maximum content length before truncation

    Returns:
        Formatted string for display
    """
    source = match.document_name or match.document_id
    text = match.text.replace("\n", " ")
    display_content = text[:max_length] + "..." if len(text) > max_length else text

    lines = [
        f"{index}. [{source} - chunk #{match.chunk_index}] (score: {match.score:.4f})",
        f"   {display_content}",
        "",
    ]
    return "\n".join(lines)
