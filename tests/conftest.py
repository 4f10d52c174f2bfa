"""Shared pytest fixtures for the novelide test suite."""

import json

import pytest
import pytest_asyncio


PROJECT = "/novel"

CHARACTERS = {
    "characters": [
        {"id": "alex", "name": "Alex", "traits": "Curious", "bio": "A wandering cartographer", "active": True},
        {
            "id": "sarah",
            "name": "Sarah Connor",
            "traits": "Bold",
            "bio": "",
            "active": True,
            "names": {"dialogue": "Sarah", "narrative": "Sarah"},
        },
        {"id": "ghost", "name": "Ghost", "traits": "", "bio": "", "active": False},
    ]
}

LOCATIONS = {
    "locations": [
        {
            "id": "city",
            "name": "Harbor City",
            "type": "outdoor",
            "color": "#3b82f6",
            "active": True,
            "description": "A port on the northern sea",
            "subLocations": ["tavern"],
        },
        {
            "id": "tavern",
            "name": "Rusty Anchor",
            "type": "indoor",
            "color": "#a855f7",
            "active": True,
            "names": {"full": "the tavern"},
            "parentLocation": "city",
        },
    ]
}

CHAPTER_ONE = """---
order: 1
title: "Chapter 1 - The Beginning"
tags: ["intro"]
characters: ["sarah"]
location: "tavern"
---

Alex: "Hello there"
Sarah walked into the tavern.
"""

CHAPTER_TWO = """---
order: 2
title: "Chapter 2 - Storm"
tags: []
characters: []
location: ""
---

The storm hit Harbor City.
Sarah: "Run!"
"""

IDEAS = "# Notes\n\nMaybe Alex has a secret.\n"


def seed_files() -> dict[str, str]:
    return {
        f"{PROJECT}/characters/characters.json": json.dumps(CHARACTERS, indent=2),
        f"{PROJECT}/locations/locations.json": json.dumps(LOCATIONS, indent=2),
        f"{PROJECT}/chapters/001-arrival.md": CHAPTER_ONE,
        f"{PROJECT}/chapters/002-storm.md": CHAPTER_TWO,
        f"{PROJECT}/ideas/notes.md": IDEAS,
    }


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with all paths pointing to tmp_path."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        log_dir=tmp_path / "logs",
        storage_backend="memory",
    )


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_storage():
    """Return an in-memory storage seeded with a small two-chapter project."""
    from storage.memory import MemoryStorage
    return MemoryStorage(files=seed_files())


@pytest.fixture
def empty_storage():
    from storage.memory import MemoryStorage
    return MemoryStorage()


# ---------------------------------------------------------------------------
# Project & session fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def store(memory_storage, settings):
    """Return a ProjectStore with the seeded project loaded."""
    from session.project import ProjectStore
    project = ProjectStore(memory_storage, settings)
    result = await project.load_project(PROJECT)
    assert result.ok, result.error
    return project


@pytest.fixture
def recorder():
    """Return a SessionCallback that records every notification."""

    class RecordingCallback:
        def __init__(self):
            self.events = []

        def on_tab_opened(self, tab):
            self.events.append(("opened", tab.id))

        def on_tab_closed(self, tab_id, active_tab_id):
            self.events.append(("closed", tab_id, active_tab_id))

        def on_content_changed(self, tab):
            self.events.append(("changed", tab.id))

        def on_saved(self, tab):
            self.events.append(("saved", tab.id))

        def on_error(self, operation, error):
            self.events.append(("error", operation, error))

    return RecordingCallback()


@pytest.fixture
def session(store, recorder):
    """Return a DocumentSession over the seeded store with a recording callback."""
    from session.document_session import DocumentSession
    return DocumentSession(store, callbacks=[recorder])
