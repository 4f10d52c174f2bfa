"""Configuration settings loaded from .env file."""

import re
from pathlib import Path
from typing import Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Paths inside a project (catalogs, folders) are relative to the project
    directory and always use forward slashes, whatever the storage backend.
    """

    # Project
    project_dir: Optional[Path] = None
    storage_backend: Literal["filesystem", "memory"] = "filesystem"
    project_folders: list[str] = ["characters", "chapters", "ideas", "locations"]

    # Files
    chapter_extension: str = ".md"
    idea_extension: str = ".md"
    characters_catalog: str = "characters/characters.json"
    locations_catalog: str = "locations/locations.json"

    # Editing
    autocomplete_limit: int = 10
    default_location_color: str = "#a855f7"

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("autocomplete_limit")
    @classmethod
    def validate_autocomplete_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("autocomplete_limit must be >= 1")
        return v

    @field_validator("default_location_color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not _HEX_COLOR.match(v):
            raise ValueError(f"default_location_color must look like #rrggbb, got {v!r}")
        return v.lower()

    @field_validator("chapter_extension", "idea_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"File extension must start with '.', got {v!r}")
        return v

    @field_validator("log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def validate_catalog_folders(self) -> "Settings":
        for catalog in (self.characters_catalog, self.locations_catalog):
            folder = catalog.split("/", 1)[0]
            if folder not in self.project_folders:
                raise ValueError(
                    f"Catalog folder '{folder}' of {catalog} is not in project_folders"
                )
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
