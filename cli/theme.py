"""Unified Rich theme and reusable UI helper functions for the CLI."""

from typing import Iterable

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from models.chapter import StructuredChapter
from models.enums import CharacterContext
from models.nodes import CharacterRef, ContentNode, LocationRef
from models.results import AutocompleteItem, EntityUsage
from tools.content_stats import ContentStats
from tools.entity_resolver import EntityResolver

NOVEL_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "chapter.num": "blue",
    "character.name": "bold cyan",
    "character.dialogue": "bold cyan",
    "location.name": "bold magenta",
    "unresolved": "bold red reverse",
})


def get_console() -> Console:
    """Return a Console instance with the novel theme applied."""
    return Console(theme=NOVEL_THEME)


def app_header(title: str = "novelide") -> Rule:
    """Return a Rule element for the application header banner."""
    return Rule(title=f"[bold]{escape(title)}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "New project").
        fields: Ordered dict of label -> value pairs.
    """
    lines = []
    for label, value in fields.items():
        lines.append(f"  [stat.label]{label}:[/] [stat.value]{escape(str(value))}[/]")
    body = "\n".join(lines)
    return Panel(body, title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def chapter_table(rows: Iterable[tuple[StructuredChapter, int]], duplicates: set[int]) -> Table:
    """Build a table of chapters with their word counts.

    Args:
        rows: (chapter, word count) pairs in display order.
        duplicates: Orders shared by several chapters; highlighted as warnings.
    """
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("#", style="chapter.num", justify="right")
    table.add_column("Title")
    table.add_column("Words", justify="right")
    table.add_column("Characters", style="muted")

    for chapter, words in rows:
        order = f"[warning]{chapter.order}[/]" if chapter.order in duplicates else str(chapter.order)
        table.add_row(order, escape(chapter.title), f"{words:,}", escape(", ".join(chapter.character_ids)))
    return table


def rendered_chapter(nodes: Iterable[ContentNode], resolver: EntityResolver) -> Text:
    """Render a node sequence with references styled and unresolved ones flagged."""
    text = Text()
    for node in nodes:
        resolution = resolver.resolve(node)
        if isinstance(node, (CharacterRef, LocationRef)) and not resolution.resolved:
            text.append(resolution.text, style="unresolved")
        elif isinstance(node, CharacterRef):
            style = "character.dialogue" if node.context is CharacterContext.DIALOGUE else "character.name"
            text.append(resolution.text, style=style)
        elif isinstance(node, LocationRef):
            text.append(resolution.text, style="location.name")
        else:
            text.append(resolution.text)
    return text


def stats_panel(stats: ContentStats, unresolved: int) -> Panel:
    """Return a Panel with word counts and reference tallies."""
    body = (
        f"  [stat.label]Words:[/] [stat.value]{stats.total_words:,}[/]  "
        f"[muted]|[/]  [stat.label]Characters:[/] [stat.value]{stats.total_characters:,}[/]\n"
        f"  [stat.label]Dialogue:[/] [stat.value]{stats.dialogue_percentage:.0f}%[/]  "
        f"[muted]|[/]  [stat.label]Narrative:[/] [stat.value]{stats.narrative_percentage:.0f}%[/]"
    )
    if unresolved:
        body += f"\n  [error]{unresolved} unresolved reference(s)[/]"
    return Panel(body, title="[bold]Statistics[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def suggestion_table(items: list[AutocompleteItem]) -> Table:
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("Kind", style="muted")
    table.add_column("Name")
    table.add_column("Id", style="muted")
    table.add_column("Description")
    for item in items:
        style = "character.name" if item.kind.value == "character" else "location.name"
        table.add_row(item.kind.value, f"[{style}]{escape(item.name)}[/]", item.id, escape(item.description or ""))
    return table


def usage_table(usages: list[EntityUsage]) -> Table:
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("Document")
    table.add_column("Kind", style="muted")
    table.add_column("Usage", style="accent")
    for usage in usages:
        table.add_row(escape(usage.title), usage.document_kind.value, usage.usage_type.value)
    return table
