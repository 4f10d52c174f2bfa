"""CLI entry point for novelide project tools.

Usage:
  novelide -p ./my-novel init           create a project with starter content
  novelide -p ./my-novel chapters       list chapters in order
  novelide -p ./my-novel show 1         print a chapter with its statistics
  novelide --help                       list all commands
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

# Ensure UTF-8 output on Windows to avoid encoding errors with Rich
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")

import click
from rich.markup import escape

from cli.theme import (
    app_header,
    chapter_table,
    command_panel,
    get_console,
    rendered_chapter,
    stats_panel,
    success_panel,
    suggestion_table,
    usage_table,
)
from config.logging_config import setup_logging
from config.settings import Settings
from models.results import OperationResult
from session.callbacks import LoggingCallback
from session.document_session import DocumentSession
from session.project import ProjectStore
from storage import create_storage
from tools.content_stats import calculate_content_stats
from tools.text_utils import count_words

console = get_console()
logger = logging.getLogger(__name__)


def _init_logging(verbose: bool, settings: Settings):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=level, log_dir=settings.log_dir, console_enabled=verbose)


def _fail(message: str, code: int = 1):
    console.print(f"[error]{escape(message)}[/]")
    sys.exit(code)


def _check(result: OperationResult, action: str) -> OperationResult:
    if not result.ok:
        _fail(f"{action} failed: {result.error}")
    return result


def _open_store(ctx: click.Context) -> ProjectStore:
    """Load the project named by --project into a fresh store."""
    settings: Settings = ctx.obj["settings"]
    store = ProjectStore(create_storage(settings), settings)
    result = _check(asyncio.run(store.load_project(ctx.obj["project"])), "Loading project")
    for warning in result.value["warnings"]:
        console.print(f"[warning]{escape(warning)}[/]")
    return store


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--project", "-p", default=None, type=click.Path(file_okay=False),
              help="Project directory (defaults to PROJECT_DIR or the current directory)")
@click.pass_context
def cli(ctx, verbose, project):
    """novelide: chapters, characters and locations of a novel project.

    \b
    Examples:
      novelide -p ./saga init
      novelide -p ./saga dialogue 1 protagonist "Who's there?" --at 40
    """
    settings = Settings()
    _init_logging(verbose, settings)
    project_dir = project or settings.project_dir or Path.cwd()
    ctx.obj = {
        "settings": settings,
        "project": Path(project_dir).as_posix(),
    }


# ---------------------------------------------------------------------------
# init command
# ---------------------------------------------------------------------------

@cli.command()
@click.pass_context
def init(ctx):
    """Create a project with a starter character, chapter and ideas file."""
    settings: Settings = ctx.obj["settings"]
    project = ctx.obj["project"]
    console.print(app_header())
    console.print(command_panel("New project", {"Directory": project, "Folders": ", ".join(settings.project_folders)}))

    store = ProjectStore(create_storage(settings), settings)
    result = _check(asyncio.run(store.create_project(project)), "Creating project")
    summary = result.value
    console.print(success_panel("Project created", (
        f"  Characters: [stat.value]{summary['characters']}[/]\n"
        f"  Chapters: [stat.value]{summary['chapters']}[/]\n"
        f"  Ideas: [stat.value]{summary['ideas']}[/]"
    )))


# ---------------------------------------------------------------------------
# chapters / show commands
# ---------------------------------------------------------------------------

@cli.command()
@click.pass_context
def chapters(ctx):
    """List chapters in order with word counts."""
    store = _open_store(ctx)
    if not store.chapters:
        console.print("[muted]No chapters yet.[/]")
        return

    rows = [(c, count_words(store.render_chapter_body(c))) for c in store.chapters]
    duplicates = store.duplicate_orders()
    console.print(chapter_table(rows, set(duplicates)))
    for order, ids in duplicates.items():
        console.print(f"[warning]Order {order} is shared by: {', '.join(ids)}[/]")


@cli.command()
@click.argument("chapter")
@click.pass_context
def show(ctx, chapter):
    """Print CHAPTER (id, filename, order or title) with its statistics."""
    store = _open_store(ctx)
    found = store.find_chapter(chapter)
    if found is None:
        _fail(f"Chapter '{chapter}' not found")

    resolver = store.resolver()
    console.print(app_header(found.title))
    console.print(rendered_chapter(found.content, resolver))
    console.print()
    unresolved = resolver.unresolved(found.content)
    console.print(stats_panel(calculate_content_stats(found.content), len(unresolved)))


# ---------------------------------------------------------------------------
# entity commands
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("query", default="")
@click.pass_context
def suggest(ctx, query):
    """Show the entities the autocomplete offers for QUERY."""
    store = _open_store(ctx)
    items = DocumentSession(store).suggest(query)
    if not items:
        console.print("[muted]No matches.[/]")
        return
    console.print(suggestion_table(items))


@cli.command()
@click.argument("character_id")
@click.pass_context
def usage(ctx, character_id):
    """List the documents that reference CHARACTER_ID."""
    store = _open_store(ctx)
    usages = store.character_usage(character_id)
    if not usages:
        console.print(f"[muted]'{escape(character_id)}' is not referenced anywhere.[/]")
        return
    console.print(usage_table(usages))


@cli.command(name="delete-character")
@click.argument("character_id")
@click.pass_context
def delete_character(ctx, character_id):
    """Delete CHARACTER_ID if no document references it."""
    store = _open_store(ctx)
    result = asyncio.run(store.delete_character(character_id))
    if not result.ok:
        count = result.details.get("reference_count")
        if count:
            console.print(usage_table(store.character_usage(character_id)))
        _fail(result.error)
    console.print(f"[success]Deleted character '{escape(character_id)}'[/]")


# ---------------------------------------------------------------------------
# dialogue command
# ---------------------------------------------------------------------------

async def _insert_and_save(session: DocumentSession, chapter, character_id: str, text: str,
                           at: Optional[int]) -> OperationResult:
    tab = session.open_tab(chapter)
    session.set_selection(len(tab.content) if at is None else at)
    result = session.insert_dialogue(character_id, text)
    if not result.ok:
        return result
    return await session.save_current_file()


@cli.command()
@click.argument("chapter")
@click.argument("character_id")
@click.argument("text")
@click.option("--at", "at", default=None, type=int, help="Text offset to insert at (default: end)")
@click.pass_context
def dialogue(ctx, chapter, character_id, text, at):
    """Insert a dialogue line for CHARACTER_ID into CHAPTER and save it."""
    store = _open_store(ctx)
    found = store.find_chapter(chapter)
    if found is None:
        _fail(f"Chapter '{chapter}' not found")

    session = DocumentSession(store, callbacks=[LoggingCallback()])
    _check(asyncio.run(_insert_and_save(session, found, character_id, text, at)), "Inserting dialogue")
    console.print(f"[success]Saved[/] {escape(found.path)}")


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
