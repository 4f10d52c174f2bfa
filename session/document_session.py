"""Document session: open tabs, the active-tab pointer, edits and saves.

Chapter tabs are edited through their node sequence, which is the source of
truth; the tab's text is always the rendering of those nodes. Raw text edits
are parsed back into nodes, reusing the ids of nodes the edit left alone.
"""

import copy
import functools
import inspect
import json
import logging
from collections import deque
from typing import Callable, Optional, Union

from config.exceptions import (
    InvalidEntityError,
    NoActiveTabError,
    SaveInProgressError,
    UnknownTabError,
    UnresolvedReferenceError,
)
from models.chapter import Idea, StructuredChapter
from models.character import Character
from models.enums import CharacterContext, TabKind
from models.location import Location
from models.nodes import CharacterRef, ContentNode, LocationRef, character_ref, line_break, location_ref
from models.results import AutocompleteItem, OperationResult, as_result
from models.tab import Cursor, Tab, TextSelection
from session.callbacks import SessionCallback
from session.commands import (
    InsertCharacterReference,
    InsertDialogue,
    InsertLocationReference,
    SessionCommand,
)
from session.project import ProjectStore
from tools.autocomplete import autocomplete
from tools.content_stats import ContentStats, calculate_content_stats
from tools.dialogue import insert_dialogue_text
from tools.entity_resolver import EntityResolver, character_display_name, location_display_name
from tools.node_ops import advance_cursor, insert_node_at, reconcile_ids, render_nodes_to_text, rendered_offset
from tools.node_parser import parse_text_to_nodes
from tools.text_utils import count_words

logger = logging.getLogger(__name__)

OpenableItem = Union[StructuredChapter, Idea, Character, Location]


def tab_id_for(kind: TabKind, item_id: str) -> str:
    """Tab ids are namespaced by kind so a chapter and a character may share an id."""
    return f"{kind.value}:{item_id}"


def _reported(operation: str) -> Callable:
    """``as_result`` plus an ``on_error`` notification for failed results."""

    def decorator(func: Callable) -> Callable:
        wrapped = as_result(operation)(func)

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(self, *args, **kwargs) -> OperationResult:
                result = await wrapped(self, *args, **kwargs)
                if not result.ok:
                    self._notify("on_error", operation, result.error)
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(self, *args, **kwargs) -> OperationResult:
            result = wrapped(self, *args, **kwargs)
            if not result.ok:
                self._notify("on_error", operation, result.error)
            return result

        return wrapper

    return decorator


def _cursor_for_offset(nodes: list[ContentNode], offset: int, resolver: EntityResolver) -> Cursor:
    """Node index of the first node starting at or after text ``offset``."""
    position = 0
    for index, node in enumerate(nodes):
        if position >= offset:
            return Cursor(index)
        position += len(resolver.resolve(node).text)
    return Cursor(len(nodes))


class DocumentSession:
    """Owns the open tabs of one project and routes edits to the active one."""

    def __init__(self, store: ProjectStore, callbacks: Optional[list[SessionCallback]] = None):
        self.store = store
        self.tabs: dict[str, Tab] = {}
        self.active_tab_id: Optional[str] = None
        self.callbacks: list[SessionCallback] = list(callbacks or [])
        self._saving: set[str] = set()
        self._queue: deque[SessionCommand] = deque()
        store.add_document_source(self.open_documents)
        store.add_catalog_listener(self._entity_renamed)

    # ---- Store hooks ----

    def open_documents(self) -> list[Union[StructuredChapter, Idea]]:
        """Live copies of the open chapters and ideas, unsaved edits included."""
        documents = []
        for tab in self.tabs.values():
            if tab.chapter is not None:
                documents.append(tab.chapter)
            elif tab.kind is TabKind.IDEA:
                documents.append(Idea(
                    id=tab.id.split(":", 1)[1],
                    filename=tab.name,
                    path=tab.storage_path,
                    content=tab.content,
                ))
        return documents

    def _entity_renamed(self, kind: str, entity_id: str) -> None:
        """Re-render open chapters that reference a renamed entity."""
        ref_type, attr = (CharacterRef, "character_id") if kind == "character" else (LocationRef, "location_id")
        for tab in self.tabs.values():
            if tab.chapter is None:
                continue
            if not any(isinstance(n, ref_type) and getattr(n, attr) == entity_id for n in tab.chapter.content):
                continue
            clean = not tab.modified
            self._refresh_chapter_tab(tab, tab.chapter.content, tab.cursor)
            if clean:
                # The stored chapter was rewritten under the new names.
                tab.mark_saved()

    # ---- Observers ----

    def add_callback(self, callback: SessionCallback) -> None:
        self.callbacks.append(callback)

    def _notify(self, event: str, *args) -> None:
        for callback in self.callbacks:
            getattr(callback, event)(*args)

    # ---- Tabs ----

    @property
    def active_tab(self) -> Optional[Tab]:
        if self.active_tab_id is None:
            return None
        return self.tabs.get(self.active_tab_id)

    def _require_active(self) -> Tab:
        tab = self.active_tab
        if tab is None:
            raise NoActiveTabError()
        return tab

    def _new_tab(self, item: OpenableItem) -> Tab:
        if isinstance(item, StructuredChapter):
            chapter = copy.deepcopy(item)
            content = render_nodes_to_text(chapter.content, resolver=self.store.resolver())
            return Tab(
                id=tab_id_for(TabKind.CHAPTER, item.id),
                name=item.title or item.filename,
                kind=TabKind.CHAPTER,
                storage_path=item.path,
                content=content,
                saved_content=content,
                chapter=chapter,
            )
        if isinstance(item, Idea):
            return Tab(
                id=tab_id_for(TabKind.IDEA, item.id),
                name=item.filename,
                kind=TabKind.IDEA,
                storage_path=item.path,
                content=item.content,
                saved_content=item.content,
            )
        if isinstance(item, Character):
            content = json.dumps(item.to_dict(), indent=2, ensure_ascii=False)
            return Tab(
                id=tab_id_for(TabKind.CHARACTER, item.id),
                name=item.name,
                kind=TabKind.CHARACTER,
                storage_path=self.store.path_for(self.store.settings.characters_catalog),
                content=content,
                saved_content=content,
            )
        if isinstance(item, Location):
            content = json.dumps(item.to_dict(), indent=2, ensure_ascii=False)
            return Tab(
                id=tab_id_for(TabKind.LOCATION, item.id),
                name=item.name,
                kind=TabKind.LOCATION,
                storage_path=self.store.path_for(self.store.settings.locations_catalog),
                content=content,
                saved_content=content,
            )
        raise TypeError(f"Cannot open {type(item).__name__} in a tab")

    def open_tab(self, item: OpenableItem) -> Tab:
        """Open ``item`` in a tab and make it active.

        An already-open item is re-activated with its live, possibly unsaved,
        content; it is not reloaded.
        """
        tab = self._new_tab(item)
        existing = self.tabs.get(tab.id)
        if existing is not None:
            tab = existing
        else:
            self.tabs[tab.id] = tab
            logger.info("Opened %s tab %s", tab.kind.value, tab.id)
        self.active_tab_id = tab.id
        self._notify("on_tab_opened", tab)
        return tab

    @_reported("activate")
    def activate(self, tab_id: str) -> Tab:
        if tab_id not in self.tabs:
            raise UnknownTabError(tab_id)
        self.active_tab_id = tab_id
        self._notify("on_tab_opened", self.tabs[tab_id])
        return self.tabs[tab_id]

    @_reported("close_tab")
    def close_tab(self, tab_id: str) -> Optional[str]:
        """Discard a tab, modified or not.

        Returns the id of the tab that is active afterwards, if any.
        """
        tab = self.tabs.pop(tab_id, None)
        if tab is None:
            raise UnknownTabError(tab_id)
        if tab.modified:
            logger.info("Discarding unsaved changes in %s", tab_id)
        if self.active_tab_id == tab_id:
            self.active_tab_id = next(iter(self.tabs), None)
        self._notify("on_tab_closed", tab_id, self.active_tab_id)
        return self.active_tab_id

    # ---- Content ----

    def _refresh_chapter_tab(self, tab: Tab, nodes: list[ContentNode], cursor: Cursor) -> None:
        """Install a new node sequence and re-derive the tab's text."""
        resolver = self.store.resolver()
        tab.chapter.content = nodes
        tab.cursor = cursor.clamp(len(nodes))
        tab.set_content(render_nodes_to_text(nodes, resolver=resolver))
        tab.selection = TextSelection(rendered_offset(nodes, tab.cursor.index, resolver))
        self._notify("on_content_changed", tab)

    def _reparse(self, tab: Tab, text: str, caret: int) -> None:
        # Dangling references render as placeholders; re-parsing would turn them into prose.
        dangling = self.store.resolver().unresolved(tab.chapter.content)
        if dangling:
            ids = sorted({n.character_id if isinstance(n, CharacterRef) else n.location_id for n in dangling})
            raise UnresolvedReferenceError(tab.chapter.id, ids)
        parsed = parse_text_to_nodes(text, self.store.characters, self.store.locations)
        nodes = reconcile_ids(tab.chapter.content, parsed.nodes)
        resolver = self.store.resolver()
        self._refresh_chapter_tab(tab, nodes, _cursor_for_offset(nodes, caret, resolver))
        tab.selection = TextSelection(caret).clamp(len(tab.content))

    def _replace_text(self, tab: Tab, text: str, caret: int) -> None:
        if tab.kind is TabKind.CHAPTER:
            self._reparse(tab, text, caret)
            return
        tab.set_content(text)
        tab.selection = TextSelection(caret).clamp(len(text))
        self._notify("on_content_changed", tab)

    @_reported("update_content")
    def update_content(self, text: str) -> Tab:
        """Replace the active tab's text, e.g. after an edit in a raw text editor."""
        tab = self._require_active()
        caret = min(tab.selection.start, len(text))
        self._replace_text(tab, text, caret)
        return tab

    @_reported("set_cursor")
    def set_cursor(self, index: int) -> Cursor:
        """Move the node cursor of the active chapter tab; clamped to the sequence."""
        tab = self._require_active()
        nodes = tab.chapter.content if tab.chapter is not None else []
        tab.cursor = Cursor(index).clamp(len(nodes))
        tab.selection = TextSelection(rendered_offset(nodes, tab.cursor.index, self.store.resolver()))
        return tab.cursor

    @_reported("set_selection")
    def set_selection(self, start: int, end: Optional[int] = None) -> TextSelection:
        """Set the text caret (or range) of the active tab; clamped to its text."""
        tab = self._require_active()
        tab.selection = TextSelection(start, end).clamp(len(tab.content))
        if tab.chapter is not None:
            tab.cursor = _cursor_for_offset(tab.chapter.content, tab.selection.start, self.store.resolver())
        return tab.selection

    def _insert_nodes(self, tab: Tab, new_nodes: list[ContentNode]) -> None:
        nodes = tab.chapter.content
        cursor = tab.cursor.clamp(len(nodes))
        for node in new_nodes:
            nodes = insert_node_at(nodes, cursor.index, node)
            cursor = advance_cursor(cursor, cursor.index)
        self._refresh_chapter_tab(tab, nodes, cursor)

    def _insert_plain(self, tab: Tab, text: str) -> None:
        selection = tab.selection.clamp(len(tab.content))
        end = selection.end if selection.is_range else selection.start
        content = tab.content[:selection.start] + text + tab.content[end:]
        self._replace_text(tab, content, selection.start + len(text))

    @_reported("insert_text")
    def insert_text(self, text: str) -> Tab:
        """Insert prose at the cursor; names of known entities become references."""
        tab = self._require_active()
        if tab.chapter is not None:
            parsed = parse_text_to_nodes(text, self.store.characters, self.store.locations)
            self._insert_nodes(tab, parsed.nodes)
        else:
            self._insert_plain(tab, text)
        return tab

    @_reported("insert_character_reference")
    def insert_character_reference(
        self,
        character_id: str,
        context: CharacterContext = CharacterContext.NARRATIVE,
    ) -> Tab:
        tab = self._require_active()
        character = self.store.get_character(character_id)
        if tab.chapter is not None:
            self._insert_nodes(tab, [character_ref(character_id, context)])
        else:
            self._insert_plain(tab, character_display_name(character, context))
        return tab

    @_reported("insert_location_reference")
    def insert_location_reference(self, location_id: str) -> Tab:
        tab = self._require_active()
        location = self.store.get_location(location_id)
        if tab.chapter is not None:
            self._insert_nodes(tab, [location_ref(location_id)])
        else:
            self._insert_plain(tab, location_display_name(location))
        return tab

    @_reported("insert_line_break")
    def insert_line_break(self) -> Tab:
        tab = self._require_active()
        if tab.chapter is not None:
            self._insert_nodes(tab, [line_break()])
        else:
            self._insert_plain(tab, "\n")
        return tab

    @_reported("insert_dialogue")
    def insert_dialogue(self, character_id: str, text: str) -> Tab:
        """Insert a dialogue line for a character at the text selection.

        Inside another speaker's line the line is split around the new one;
        elsewhere the line becomes its own paragraph.
        """
        tab = self._require_active()
        character = self.store.get_character(character_id)
        speaker = character_display_name(character, CharacterContext.DIALOGUE)
        selection = tab.selection.clamp(len(tab.content))
        content, caret = insert_dialogue_text(tab.content, speaker, text, selection.start, selection.end)
        self._replace_text(tab, content, caret)
        logger.debug("Inserted dialogue for %s in %s", character_id, tab.id)
        return tab

    # ---- Command queue ----

    def post(self, command: SessionCommand) -> None:
        """Queue an edit request; it is applied by the next ``drain``."""
        self._queue.append(command)

    def drain(self) -> list[OperationResult]:
        """Apply queued commands in posting order.

        With no active tab a command is dropped without effect.
        """
        results = []
        while self._queue:
            command = self._queue.popleft()
            if self.active_tab is None:
                logger.debug("No active tab; dropping %s", type(command).__name__)
                results.append(OperationResult.success())
                continue
            if isinstance(command, InsertDialogue):
                results.append(self.insert_dialogue(command.character_id, command.text))
            elif isinstance(command, InsertCharacterReference):
                results.append(self.insert_character_reference(command.character_id, command.context))
            elif isinstance(command, InsertLocationReference):
                results.append(self.insert_location_reference(command.location_id))
            else:
                raise TypeError(f"Unknown session command {command!r}")
        return results

    # ---- Saving ----

    async def _save_entity(self, tab: Tab) -> OperationResult:
        try:
            record = json.loads(tab.content)
        except json.JSONDecodeError as e:
            raise InvalidEntityError(f"Invalid JSON in {tab.name}: {e.msg}") from None
        if not isinstance(record, dict):
            raise InvalidEntityError(f"{tab.name} must hold a JSON object")
        entity_id = tab.id.split(":", 1)[1]
        if record.get("id", entity_id) != entity_id:
            raise InvalidEntityError("Entity id cannot be changed", {"id": entity_id})
        record["id"] = entity_id
        try:
            if tab.kind is TabKind.CHARACTER:
                return await self.store.put_character(Character.from_dict(record))
            return await self.store.put_location(Location.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidEntityError(f"Invalid {tab.kind.value} record: {e!r}") from None

    @_reported("save")
    async def save_current_file(self) -> Tab:
        """Persist the active tab.

        Chapters are written as frontmatter built from their structured
        metadata plus the rendered body; ideas are written as raw text;
        character and location records are validated and written to their
        catalog. A failed write leaves the tab modified. A second save of a
        tab whose save is still in flight is rejected.
        """
        tab = self._require_active()
        if tab.id in self._saving:
            raise SaveInProgressError(tab.id)
        self._saving.add(tab.id)
        try:
            if tab.kind is TabKind.CHAPTER:
                before = tab.content
                body = await self.store.persist_chapter(tab.chapter)
                # Edits made while the write was pending stay unsaved.
                if tab.content == before:
                    tab.set_content(body)
                tab.mark_saved(body)
            elif tab.kind is TabKind.IDEA:
                content = tab.content
                await self.store.persist_idea(tab.id.split(":", 1)[1], tab.storage_path, content)
                tab.mark_saved(content)
            else:
                content = tab.content
                result = await self._save_entity(tab)
                if not result.ok:
                    return result
                tab.name = result.value.name
                tab.mark_saved(content)
        finally:
            self._saving.discard(tab.id)
        logger.info("Saved %s", tab.storage_path)
        self._notify("on_saved", tab)
        return tab

    # ---- Queries ----

    def suggest(self, query: str) -> list[AutocompleteItem]:
        return autocomplete(
            query,
            self.store.characters,
            self.store.locations,
            limit=self.store.settings.autocomplete_limit,
        )

    def active_stats(self) -> Optional[ContentStats]:
        """Statistics for the active tab, or None with no active tab.

        For non-chapter tabs only the word and character totals are filled.
        """
        tab = self.active_tab
        if tab is None:
            return None
        if tab.chapter is not None:
            return calculate_content_stats(tab.chapter.content)
        return ContentStats(total_words=count_words(tab.content), total_characters=len(tab.content))
