"""Tests for Settings validation."""

import pytest
from pydantic import ValidationError


class TestSettingsDefaults:
    def test_settings_created_with_defaults(self, settings):
        assert settings.autocomplete_limit == 10
        assert settings.project_folders == ["characters", "chapters", "ideas", "locations"]

    def test_default_catalog_paths(self, settings):
        assert settings.characters_catalog == "characters/characters.json"
        assert settings.locations_catalog == "locations/locations.json"

    def test_default_extensions(self, settings):
        assert settings.chapter_extension == ".md"
        assert settings.idea_extension == ".md"

    def test_default_backend(self, tmp_path):
        from config.settings import Settings
        # Use _env_file=None to test code defaults without .env overrides
        s = Settings(_env_file=None, log_dir=tmp_path / "logs")
        assert s.storage_backend == "filesystem"
        assert s.project_dir is None
        assert s.default_location_color == "#a855f7"

    def test_log_dir_parent_created(self, tmp_path):
        from config.settings import Settings
        Settings(_env_file=None, log_dir=tmp_path / "nested" / "logs")
        assert (tmp_path / "nested").is_dir()


class TestSettingsValidation:
    def test_autocomplete_limit_zero_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="autocomplete_limit"):
            Settings(_env_file=None, log_dir=tmp_path / "logs", autocomplete_limit=0)

    def test_bad_color_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="rrggbb"):
            Settings(_env_file=None, log_dir=tmp_path / "logs", default_location_color="purple")

    def test_color_is_lowercased(self, tmp_path):
        from config.settings import Settings
        s = Settings(_env_file=None, log_dir=tmp_path / "logs", default_location_color="#A855F7")
        assert s.default_location_color == "#a855f7"

    def test_extension_without_dot_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="extension"):
            Settings(_env_file=None, log_dir=tmp_path / "logs", chapter_extension="md")

    def test_catalog_outside_project_folders_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="project_folders"):
            Settings(
                _env_file=None,
                log_dir=tmp_path / "logs",
                project_folders=["chapters", "ideas", "locations"],
            )

    def test_unknown_backend_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_dir=tmp_path / "logs", storage_backend="s3")


class TestGetSettings:
    def test_returns_cached_instance(self, monkeypatch, tmp_path):
        import config.settings as settings_module
        monkeypatch.setattr(settings_module, "_settings_instance", None)
        monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
        first = settings_module.get_settings()
        assert settings_module.get_settings() is first
