"""Project-level store: entity catalogs, chapters and ideas of one project.

Catalog mutations are serialized through this store. Each one writes the
catalog file first and only updates the in-memory catalog when the write
succeeded, so memory never runs ahead of what is on disk.
"""

import copy
import dataclasses
import json
import logging
import re
from typing import Any, Callable, Iterable, Optional, Union

from config.exceptions import (
    CatalogError,
    EntityInUseError,
    EntityNotFoundError,
    InvalidEntityError,
    LocationCycleError,
    ProjectNotLoadedError,
    StorageError,
    UnresolvedReferenceError,
)
from config.settings import Settings, get_settings
from models.chapter import Idea, StructuredChapter
from models.character import Character, CharacterNames
from models.enums import CharacterContext, LocationType, TabKind, UsageType
from models.location import Location, LocationNames
from models.nodes import CharacterRef, LocationRef
from models.results import EntityUsage, as_result
from storage.base import StorageBackend, join_path
from tools.entity_resolver import EntityResolver, character_display_name, location_display_name
from tools.frontmatter import parse_chapter, serialize_chapter
from tools.node_ops import render_nodes_to_text
from tools.node_parser import parse_text_to_nodes
from tools.text_utils import parse_dialogue_line, slugify

logger = logging.getLogger(__name__)

PROTAGONIST = Character(
    id="protagonist",
    name="Main Character",
    traits="Brave, determined, mysterious past",
    bio="The story's main protagonist...",
    appearance="Tall with piercing eyes",
)

FIRST_CHAPTER_FILENAME = "001-beginning"

FIRST_CHAPTER_BODY = """# Chapter 1 - The Beginning

Write your story here...

Main Character: "This is where it all begins."

*The adventure starts now...*
"""

INITIAL_IDEAS = """# Story Ideas

## Plot Concepts
- Write your initial story concepts here
- Character backstories
- World building notes

## Themes
- What themes do you want to explore?
- Character arcs
- Emotional journey

## Research Notes
- Add research notes here
- Historical context
- Technical details
"""

_CONTEXT_USAGE = {
    CharacterContext.DIALOGUE: UsageType.DIALOGUE,
    CharacterContext.NARRATIVE: UsageType.NARRATIVE,
    CharacterContext.REFERENCE: UsageType.REFERENCE,
}

# Fields callers may not patch directly.
_CHARACTER_FIXED = {"id"}
_LOCATION_FIXED = {"id", "sub_locations"}

Document = Union[StructuredChapter, Idea]


def _mentions(text: str, names: set[str]) -> bool:
    names = {n for n in names if n}
    if not names:
        return False
    alternation = "|".join(re.escape(n) for n in sorted(names, key=len, reverse=True))
    return re.search(rf"(?<!\w)(?:{alternation})(?!\w)", text) is not None


class ProjectStore:
    """Holds one project's catalogs and documents, backed by a storage collaborator."""

    def __init__(self, storage: StorageBackend, settings: Optional[Settings] = None):
        self.storage = storage
        self.settings = settings or get_settings()
        self.project_path: Optional[str] = None
        self.characters: list[Character] = []
        self.locations: list[Location] = []
        self.chapters: list[StructuredChapter] = []
        self.ideas: list[Idea] = []
        self.warnings: list[str] = []
        # Ids handed out during this store's lifetime, deleted ones included.
        self._issued_ids: dict[str, set[str]] = {"character": set(), "location": set()}
        self._document_sources: list[Callable[[], Iterable[Document]]] = []
        self._catalog_listeners: list[Callable[[str, str], None]] = []

    # ---- Live documents ----

    def add_document_source(self, source: Callable[[], Iterable[Document]]) -> None:
        """Register a provider of unsaved document copies (e.g. open editor tabs).

        Usage queries, and so entity deletion, see these copies as well as
        the stored documents.
        """
        self._document_sources.append(source)

    def add_catalog_listener(self, listener: Callable[[str, str], None]) -> None:
        """Register ``listener(kind, entity_id)``, called after an entity's display names change."""
        self._catalog_listeners.append(listener)

    def _live_documents(self) -> list[Document]:
        documents = []
        for source in self._document_sources:
            documents.extend(source())
        return documents

    def _chapter_versions(self) -> list[list[StructuredChapter]]:
        """Every chapter with its unsaved copies; the stored copy comes first."""
        groups = {chapter.id: [chapter] for chapter in self.chapters}
        for document in self._live_documents():
            if isinstance(document, StructuredChapter):
                groups.setdefault(document.id, []).append(document)
        return list(groups.values())

    def _idea_versions(self) -> list[list[Idea]]:
        groups = {idea.id: [idea] for idea in self.ideas}
        for document in self._live_documents():
            if isinstance(document, Idea):
                groups.setdefault(document.id, []).append(document)
        return list(groups.values())

    # ---- Paths & lookups ----

    def _require_project(self) -> str:
        if not self.project_path:
            raise ProjectNotLoadedError()
        return self.project_path

    def path_for(self, *parts: str) -> str:
        return join_path(self._require_project(), *parts)

    @property
    def chapters_dir(self) -> str:
        return self.path_for("chapters")

    @property
    def ideas_dir(self) -> str:
        return self.path_for("ideas")

    def resolver(self) -> EntityResolver:
        return EntityResolver(self.characters, self.locations)

    def get_character(self, character_id: str) -> Character:
        for character in self.characters:
            if character.id == character_id:
                return character
        raise EntityNotFoundError("character", character_id)

    def get_location(self, location_id: str) -> Location:
        for location in self.locations:
            if location.id == location_id:
                return location
        raise EntityNotFoundError("location", location_id)

    def get_chapter(self, chapter_id: str) -> Optional[StructuredChapter]:
        return next((c for c in self.chapters if c.id == chapter_id), None)

    def get_idea(self, idea_id: str) -> Optional[Idea]:
        return next((i for i in self.ideas if i.id == idea_id), None)

    def find_chapter(self, key: str) -> Optional[StructuredChapter]:
        """Look a chapter up by id, filename, order number or title."""
        for chapter in self.chapters:
            if key in (chapter.id, chapter.filename, chapter.title) or key == str(chapter.order):
                return chapter
        return None

    def duplicate_orders(self) -> dict[int, list[str]]:
        """Orders shared by more than one chapter, mapped to their chapter ids."""
        by_order: dict[int, list[str]] = {}
        for chapter in self.chapters:
            by_order.setdefault(chapter.order, []).append(chapter.id)
        return {order: ids for order, ids in by_order.items() if len(ids) > 1}

    def _sort_chapters(self) -> None:
        self.chapters.sort(key=lambda c: (c.order, c.filename))

    # ---- Storage helpers ----

    async def _write(self, path: str, content: str) -> None:
        result = await self.storage.write_file(path, content)
        if not result.ok:
            raise StorageError(f"Failed to write {path}: {result.error}", path)

    async def _read(self, path: str) -> str:
        result = await self.storage.read_file(path)
        if not result.ok:
            raise StorageError(f"Failed to read {path}: {result.error}", path)
        return result.content or ""

    async def _list(self, path: str) -> list[str]:
        result = await self.storage.read_directory(path)
        if not result.ok:
            raise StorageError(f"Failed to list {path}: {result.error}", path)
        return list(result.entries or [])

    def _catalog_path(self, kind: str) -> str:
        relative = self.settings.characters_catalog if kind == "character" else self.settings.locations_catalog
        return self.path_for(relative)

    async def _write_catalog(self, kind: str, entities: list) -> None:
        key = "characters" if kind == "character" else "locations"
        payload = {key: [e.to_dict() for e in entities]}
        await self._write(self._catalog_path(kind), json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
        logger.info("Wrote %s catalog (%d records)", kind, len(entities))

    async def _read_catalog(self, kind: str, from_dict: Callable[[dict], Any]) -> list:
        """Read one catalog; an unreadable or malformed file degrades to empty."""
        key = "characters" if kind == "character" else "locations"
        path = self._catalog_path(kind)
        try:
            data = json.loads(await self._read(path))
            if not isinstance(data, dict) or not isinstance(data.get(key), list):
                raise CatalogError(f"Catalog {path} has no '{key}' array")
        except StorageError as e:
            self._warn(f"Could not load {key}: {e.message}")
            return []
        except json.JSONDecodeError as e:
            self._warn(f"Could not load {key}: invalid JSON in {path} ({e.msg})")
            return []
        except CatalogError as e:
            self._warn(f"Could not load {key}: {e.message}")
            return []

        entities = []
        for position, record in enumerate(data[key]):
            try:
                entities.append(from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                self._warn(f"Skipping {kind} record {position} in {path}: {e!r}")
        return entities

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    # ---- Chapter files ----

    def parse_chapter_file(self, chapter_id: str, filename: str, path: str, raw: str) -> StructuredChapter:
        """Build a structured chapter from a persisted chapter file."""
        metadata, body = parse_chapter(raw)
        parsed = parse_text_to_nodes(body, self.characters, self.locations)
        for warning in parsed.warnings:
            logger.debug("%s: %s", filename, warning)
        return StructuredChapter.from_metadata(chapter_id, metadata, parsed.nodes, filename, path)

    def render_chapter_body(self, chapter: StructuredChapter) -> str:
        return render_nodes_to_text(chapter.content, resolver=self.resolver())

    def serialize_chapter_file(self, chapter: StructuredChapter) -> str:
        return serialize_chapter(self.render_chapter_body(chapter), chapter.metadata())

    async def persist_chapter(self, chapter: StructuredChapter) -> str:
        """Write a chapter file and keep the store's copy in step.

        Returns the persisted body text.

        Raises:
            UnresolvedReferenceError: If a reference points at a missing
                entity; its placeholder text must not reach the file.
            StorageError: If the write fails; the stored chapter is untouched.
        """
        stored = copy.deepcopy(chapter)
        resolver = self.resolver()
        dangling = resolver.unresolved(stored.content)
        if dangling:
            ids = sorted({n.character_id if isinstance(n, CharacterRef) else n.location_id for n in dangling})
            raise UnresolvedReferenceError(chapter.id, ids)
        body = render_nodes_to_text(stored.content, resolver=resolver)
        await self._write(stored.path, serialize_chapter(body, stored.metadata()))
        for i, existing in enumerate(self.chapters):
            if existing.id == chapter.id:
                self.chapters[i] = stored
                break
        else:
            self.chapters.append(stored)
        self._sort_chapters()
        return body

    async def _rewrite_references(self, kind: str, entity_id: str) -> None:
        """Re-persist every stored chapter that references the entity.

        Chapter bodies are prose, so a renamed entity is only recognised on
        the next load if its references are written out under the new names.
        Listeners are told afterwards so open copies can re-render.

        Raises:
            StorageError: If any chapter could not be rewritten.
        """
        ref_type, attr = (CharacterRef, "character_id") if kind == "character" else (LocationRef, "location_id")
        failed = []
        for chapter in list(self.chapters):
            if not any(isinstance(n, ref_type) and getattr(n, attr) == entity_id for n in chapter.content):
                continue
            try:
                await self.persist_chapter(chapter)
            except (StorageError, UnresolvedReferenceError) as e:
                self._warn(e.message)
                failed.append(chapter.id)
        logger.info("Rewrote chapters referencing %s %s", kind, entity_id)

        for listener in self._catalog_listeners:
            listener(kind, entity_id)
        if failed:
            raise StorageError(f"Renamed {kind} '{entity_id}' but could not rewrite {', '.join(failed)}")

    async def persist_idea(self, idea_id: str, path: str, content: str) -> None:
        """Write an idea document and update the stored copy.

        Raises:
            StorageError: If the write fails.
        """
        await self._write(path, content)
        idea = self.get_idea(idea_id)
        if idea is not None:
            idea.content = content

    # ---- Project lifecycle ----

    def clear(self) -> None:
        self.project_path = None
        self.characters = []
        self.locations = []
        self.chapters = []
        self.ideas = []
        self.warnings = []

    @as_result("create_project")
    async def create_project(self, project_dir: str) -> dict:
        """Lay out a new project with starter content, then load it."""
        project_dir = project_dir.rstrip("/") or "/"
        logger.info("Creating project at %s", project_dir)
        for folder in self.settings.project_folders:
            path = join_path(project_dir, folder)
            result = await self.storage.create_directory(path)
            if not result.ok:
                raise StorageError(f"Failed to create folder {path}: {result.error}", path)

        self.project_path = project_dir
        await self._write_catalog("character", [copy.deepcopy(PROTAGONIST)])
        await self._write_catalog("location", [])

        first = StructuredChapter(
            id=FIRST_CHAPTER_FILENAME,
            order=1,
            title="Chapter 1 - The Beginning",
            tags=["intro"],
            character_ids=[PROTAGONIST.id],
        )
        ext = self.settings.chapter_extension
        await self._write(
            self.path_for("chapters", f"{FIRST_CHAPTER_FILENAME}{ext}"),
            serialize_chapter(FIRST_CHAPTER_BODY, first.metadata()),
        )
        await self._write(self.path_for("ideas", f"initial-ideas{self.settings.idea_extension}"), INITIAL_IDEAS)
        return await self._load(project_dir)

    @as_result("load_project")
    async def load_project(self, project_dir: str) -> dict:
        """Load catalogs, chapters and ideas.

        Missing or malformed pieces degrade to empty with a warning; the
        returned summary lists those warnings.
        """
        return await self._load(project_dir.rstrip("/") or "/")

    async def _load(self, project_dir: str) -> dict:
        self.clear()
        self.project_path = project_dir
        logger.info("Loading project from %s", project_dir)

        self.characters = await self._read_catalog("character", Character.from_dict)
        self.locations = await self._read_catalog("location", Location.from_dict)
        self._issued_ids["character"].update(c.id for c in self.characters)
        self._issued_ids["location"].update(l.id for l in self.locations)

        for filename in await self._list_documents(self.chapters_dir, self.settings.chapter_extension):
            path = join_path(self.chapters_dir, filename)
            try:
                raw = await self._read(path)
            except StorageError as e:
                self._warn(e.message)
                continue
            chapter_id = filename[: -len(self.settings.chapter_extension)]
            self.chapters.append(self.parse_chapter_file(chapter_id, filename, path, raw))
        self._sort_chapters()

        for filename in await self._list_documents(self.ideas_dir, self.settings.idea_extension):
            path = join_path(self.ideas_dir, filename)
            try:
                content = await self._read(path)
            except StorageError as e:
                self._warn(e.message)
                continue
            self.ideas.append(Idea(
                id=filename[: -len(self.settings.idea_extension)],
                filename=filename,
                path=path,
                content=content,
            ))

        for order, ids in self.duplicate_orders().items():
            self._warn(f"Chapters {', '.join(ids)} share order {order}")

        logger.info(
            "Loaded project: %d characters, %d locations, %d chapters, %d ideas",
            len(self.characters), len(self.locations), len(self.chapters), len(self.ideas),
        )
        return {
            "path": project_dir,
            "characters": len(self.characters),
            "locations": len(self.locations),
            "chapters": len(self.chapters),
            "ideas": len(self.ideas),
            "warnings": list(self.warnings),
        }

    async def _list_documents(self, directory: str, extension: str) -> list[str]:
        try:
            entries = await self._list(directory)
        except StorageError as e:
            self._warn(e.message)
            return []
        return [name for name in entries if name.endswith(extension)]

    # ---- Chapters & ideas ----

    @as_result("add_chapter")
    async def add_chapter(self, title: str) -> StructuredChapter:
        """Create a chapter after the last one, as ``NNN-slug`` in the chapters folder."""
        title = title.strip()
        if not title:
            raise InvalidEntityError("Chapter title must not be empty")
        order = max((c.order for c in self.chapters), default=0) + 1
        ext = self.settings.chapter_extension
        stem = f"{order:03d}-{slugify(title, fallback='chapter')}"
        taken = {c.id for c in self.chapters}
        chapter_id, suffix = stem, 2
        while chapter_id in taken:
            chapter_id = f"{stem}-{suffix}"
            suffix += 1

        parsed = parse_text_to_nodes(f"# {title}\n\n", self.characters, self.locations)
        chapter = StructuredChapter(
            id=chapter_id,
            order=order,
            title=title,
            content=parsed.nodes,
            filename=f"{chapter_id}{ext}",
            path=join_path(self.chapters_dir, f"{chapter_id}{ext}"),
        )
        await self.persist_chapter(chapter)
        logger.info("Added chapter %s (order %d)", chapter_id, order)
        return self.get_chapter(chapter_id)

    @as_result("delete_chapter")
    async def delete_chapter(self, chapter_id: str) -> None:
        chapter = self.get_chapter(chapter_id)
        if chapter is None:
            raise EntityNotFoundError("chapter", chapter_id)
        result = await self.storage.delete_file(chapter.path)
        if not result.ok:
            raise StorageError(f"Failed to delete {chapter.path}: {result.error}", chapter.path)
        self.chapters = [c for c in self.chapters if c.id != chapter_id]
        logger.info("Deleted chapter %s", chapter_id)

    @as_result("add_idea")
    async def add_idea(self, name: str) -> Idea:
        name = name.strip()
        if not name:
            raise InvalidEntityError("Idea name must not be empty")
        taken = {i.id for i in self.ideas}
        stem = slugify(name, fallback="idea")
        idea_id, suffix = stem, 2
        while idea_id in taken:
            idea_id = f"{stem}-{suffix}"
            suffix += 1
        filename = f"{idea_id}{self.settings.idea_extension}"
        idea = Idea(id=idea_id, filename=filename, path=join_path(self.ideas_dir, filename), content=f"# {name}\n\n")
        await self._write(idea.path, idea.content)
        self.ideas.append(idea)
        return idea

    # ---- Characters ----

    def _new_id(self, kind: str, name: str) -> str:
        """Slug of ``name``, suffixed until it was never issued nor referenced."""
        taken = set(self._issued_ids[kind])
        if kind == "character":
            taken.update(c.id for c in self.characters)
            for chapter in self.chapters:
                taken.update(chapter.character_ids)
                taken.update(n.character_id for n in chapter.content if isinstance(n, CharacterRef))
        else:
            taken.update(l.id for l in self.locations)
            for chapter in self.chapters:
                if chapter.location:
                    taken.add(chapter.location)
                taken.update(n.location_id for n in chapter.content if isinstance(n, LocationRef))
        stem = slugify(name, fallback=kind)
        candidate, suffix = stem, 2
        while candidate in taken:
            candidate = f"{stem}-{suffix}"
            suffix += 1
        return candidate

    @staticmethod
    def _check_fields(model: type, fields: dict, fixed: set[str]) -> None:
        known = {f.name for f in dataclasses.fields(model)}
        bad = sorted(k for k in fields if k not in known or k in fixed)
        if bad:
            raise InvalidEntityError(
                f"Cannot set {', '.join(bad)} on {model.__name__.lower()}",
                {"fields": ", ".join(bad)},
            )

    @staticmethod
    def _coerce_character_fields(fields: dict) -> dict:
        fields = dict(fields)
        if isinstance(fields.get("names"), dict):
            fields["names"] = CharacterNames.from_dict(fields["names"])
        if "name" in fields and not str(fields["name"]).strip():
            raise InvalidEntityError("Character name must not be empty")
        return fields

    @as_result("add_character")
    async def add_character(self, name: str, **fields) -> Character:
        """Create a character whose id is derived from ``name``."""
        self._require_project()
        self._check_fields(Character, fields, {"id", "name"})
        fields = self._coerce_character_fields({"name": name, **fields})
        character = Character(id=self._new_id("character", name), **fields)
        await self._write_catalog("character", [*self.characters, character])
        self.characters.append(character)
        self._issued_ids["character"].add(character.id)
        logger.info("Added character %s", character.id)
        return character

    @staticmethod
    def _character_names(character: Character) -> set[str]:
        return {character.name, *(character_display_name(character, c) for c in CharacterContext)}

    @staticmethod
    def _location_names(location: Location) -> set[str]:
        return {location.name, location_display_name(location)}

    async def _replace_character(self, current: Character, updated: Character) -> Character:
        catalog = [updated if c.id == current.id else c for c in self.characters]
        await self._write_catalog("character", catalog)
        self.characters = catalog
        if self._character_names(current) != self._character_names(updated):
            await self._rewrite_references("character", updated.id)
        return updated

    @as_result("update_character")
    async def update_character(self, character_id: str, patch: dict) -> Character:
        """Patch a character; a name change is carried into every chapter that references it."""
        self._require_project()
        self._check_fields(Character, patch, _CHARACTER_FIXED)
        current = self.get_character(character_id)
        updated = dataclasses.replace(copy.deepcopy(current), **self._coerce_character_fields(patch))
        return await self._replace_character(current, updated)

    @as_result("put_character")
    async def put_character(self, character: Character) -> Character:
        """Replace a stored character with ``character`` (matched by id)."""
        self._require_project()
        current = self.get_character(character.id)
        if not character.name.strip():
            raise InvalidEntityError("Character name must not be empty")
        return await self._replace_character(current, character)

    @staticmethod
    def _chapter_character_usage(chapter: StructuredChapter, character_id: str) -> Optional[UsageType]:
        if character_id in chapter.character_ids:
            return UsageType.FRONTMATTER
        ref = next(
            (n for n in chapter.content if isinstance(n, CharacterRef) and n.character_id == character_id),
            None,
        )
        return _CONTEXT_USAGE[ref.context] if ref is not None else None

    @staticmethod
    def _idea_character_usage(idea: Idea, names: set[str], speakers: set[str]) -> Optional[UsageType]:
        for line in idea.content.split("\n"):
            dialogue = parse_dialogue_line(line)
            if dialogue is not None and dialogue.speaker in speakers:
                return UsageType.DIALOGUE
        return UsageType.NARRATIVE if _mentions(idea.content, names) else None

    def character_usage(self, character_id: str) -> list[EntityUsage]:
        """Every document that references the character, one entry per document.

        Unsaved copies registered through ``add_document_source`` count too.
        """
        usages = []
        for versions in self._chapter_versions():
            usage_type = next(
                (u for u in (self._chapter_character_usage(c, character_id) for c in versions) if u), None,
            )
            if usage_type is not None:
                usages.append(EntityUsage(versions[0].id, TabKind.CHAPTER, versions[0].title, usage_type))

        try:
            character = self.get_character(character_id)
        except EntityNotFoundError:
            return usages
        names = self._character_names(character)
        speakers = {character.name, character_display_name(character, CharacterContext.DIALOGUE)}
        for versions in self._idea_versions():
            usage_type = next(
                (u for u in (self._idea_character_usage(i, names, speakers) for i in versions) if u), None,
            )
            if usage_type is not None:
                usages.append(EntityUsage(versions[0].id, TabKind.IDEA, versions[0].filename, usage_type))
        return usages

    @as_result("delete_character")
    async def delete_character(self, character_id: str) -> None:
        """Remove a character no document references any more."""
        self._require_project()
        self.get_character(character_id)
        usage = self.character_usage(character_id)
        if usage:
            raise EntityInUseError("character", character_id, len(usage))
        catalog = [c for c in self.characters if c.id != character_id]
        await self._write_catalog("character", catalog)
        self.characters = catalog
        logger.info("Deleted character %s", character_id)

    # ---- Locations ----

    @staticmethod
    def _coerce_location_fields(fields: dict) -> dict:
        fields = dict(fields)
        if isinstance(fields.get("names"), dict):
            fields["names"] = LocationNames.from_dict(fields["names"])
        if "type" in fields:
            try:
                fields["type"] = LocationType(fields["type"])
            except ValueError:
                raise InvalidEntityError(f"Unknown location type '{fields['type']}'") from None
        if "name" in fields and not str(fields["name"]).strip():
            raise InvalidEntityError("Location name must not be empty")
        return fields

    def location_ancestors(self, location_id: str) -> list[str]:
        """Parent chain of a location, nearest first.

        The walk stops at the first repeated id, so a cycle already present
        in loaded data cannot loop forever.
        """
        by_id = {l.id: l for l in self.locations}
        chain: list[str] = []
        seen = {location_id}
        current = by_id.get(location_id)
        while current is not None and current.parent_location:
            parent_id = current.parent_location
            if parent_id in seen:
                logger.warning("Location hierarchy cycle at %s", parent_id)
                break
            chain.append(parent_id)
            seen.add(parent_id)
            current = by_id.get(parent_id)
        return chain

    def _reparented(self, location_id: str, parent_id: Optional[str]) -> list[Location]:
        """Catalog copy with ``location_id`` moved under ``parent_id``.

        Raises:
            EntityNotFoundError: If either location is missing.
            LocationCycleError: If ``parent_id`` is the location or one of its descendants.
        """
        self.get_location(location_id)
        if parent_id is not None:
            self.get_location(parent_id)
            if parent_id == location_id or location_id in self.location_ancestors(parent_id):
                raise LocationCycleError(location_id, parent_id)

        catalog = copy.deepcopy(self.locations)
        for location in catalog:
            if location.id == location_id:
                location.parent_location = parent_id
            elif location_id in location.sub_locations and location.id != parent_id:
                location.sub_locations.remove(location_id)
            if location.id == parent_id and location_id not in location.sub_locations:
                location.sub_locations.append(location_id)
        return catalog

    @as_result("set_parent_location")
    async def set_parent_location(self, location_id: str, parent_id: Optional[str]) -> Location:
        self._require_project()
        catalog = self._reparented(location_id, parent_id or None)
        await self._write_catalog("location", catalog)
        self.locations = catalog
        return self.get_location(location_id)

    @as_result("add_location")
    async def add_location(self, name: str, parent_location: Optional[str] = None, **fields) -> Location:
        self._require_project()
        self._check_fields(Location, fields, {"id", "name", "parent_location", "sub_locations"})
        fields = self._coerce_location_fields({"name": name, **fields})
        fields.setdefault("color", self.settings.default_location_color)
        location = Location(id=self._new_id("location", name), **fields)
        self.locations.append(location)
        try:
            catalog = self._reparented(location.id, parent_location) if parent_location else copy.deepcopy(self.locations)
        finally:
            self.locations.pop()
        await self._write_catalog("location", catalog)
        self.locations = catalog
        self._issued_ids["location"].add(location.id)
        logger.info("Added location %s", location.id)
        return self.get_location(location.id)

    async def _patch_location(self, location_id: str, patch: dict) -> Location:
        self._require_project()
        self._check_fields(Location, patch, _LOCATION_FIXED)
        patch = self._coerce_location_fields(patch)
        current = self.get_location(location_id)
        parent_id = patch.pop("parent_location", current.parent_location) or None
        if parent_id != current.parent_location:
            catalog = self._reparented(location_id, parent_id)
        else:
            catalog = copy.deepcopy(self.locations)
        catalog = [dataclasses.replace(l, **patch) if l.id == location_id else l for l in catalog]
        await self._write_catalog("location", catalog)
        self.locations = catalog
        updated = self.get_location(location_id)
        if self._location_names(current) != self._location_names(updated):
            await self._rewrite_references("location", location_id)
        return updated

    @as_result("update_location")
    async def update_location(self, location_id: str, patch: dict) -> Location:
        """Patch a location; a ``parent_location`` change goes through the cycle check."""
        return await self._patch_location(location_id, patch)

    @as_result("put_location")
    async def put_location(self, location: Location) -> Location:
        """Replace a stored location with ``location`` (matched by id).

        ``sub_locations`` is derived from the children and is not taken from
        the given record.
        """
        patch = {
            f.name: getattr(location, f.name)
            for f in dataclasses.fields(Location)
            if f.name not in _LOCATION_FIXED
        }
        return await self._patch_location(location.id, patch)

    @staticmethod
    def _chapter_location_usage(chapter: StructuredChapter, location_id: str) -> Optional[UsageType]:
        if chapter.location == location_id:
            return UsageType.FRONTMATTER
        if any(isinstance(n, LocationRef) and n.location_id == location_id for n in chapter.content):
            return UsageType.LOCATION
        return None

    def location_usage(self, location_id: str) -> list[EntityUsage]:
        usages = []
        for versions in self._chapter_versions():
            usage_type = next(
                (u for u in (self._chapter_location_usage(c, location_id) for c in versions) if u), None,
            )
            if usage_type is not None:
                usages.append(EntityUsage(versions[0].id, TabKind.CHAPTER, versions[0].title, usage_type))

        try:
            location = self.get_location(location_id)
        except EntityNotFoundError:
            return usages
        names = self._location_names(location)
        for versions in self._idea_versions():
            if any(_mentions(idea.content, names) for idea in versions):
                usages.append(EntityUsage(versions[0].id, TabKind.IDEA, versions[0].filename, UsageType.LOCATION))
        return usages

    @as_result("delete_location")
    async def delete_location(self, location_id: str) -> None:
        """Remove an unreferenced location; its children move up to its parent."""
        self._require_project()
        location = self.get_location(location_id)
        usage = self.location_usage(location_id)
        if usage:
            raise EntityInUseError("location", location_id, len(usage))
        catalog = []
        for other in copy.deepcopy(self.locations):
            if other.id == location_id:
                continue
            if other.parent_location == location_id:
                other.parent_location = location.parent_location
            if location_id in other.sub_locations:
                other.sub_locations.remove(location_id)
            if other.id == location.parent_location:
                other.sub_locations.extend(s for s in location.sub_locations if s not in other.sub_locations)
            catalog.append(other)
        await self._write_catalog("location", catalog)
        self.locations = catalog
        logger.info("Deleted location %s", location_id)
