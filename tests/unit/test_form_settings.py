"""Tests for regforms/lib/settings.py."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from regforms.lib.settings import PROJECT_FILE_NAME, FormSettings, get_settings


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test from an empty directory so no .env is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write_project_file(root: Path, text: str) -> None:
    (root / PROJECT_FILE_NAME).write_text(text, encoding="utf-8")


class TestFormSettingsDefaults:
    def test_defaults(self) -> None:
        settings = FormSettings()

        assert settings.storage_backend == "memory"
        assert settings.execution_context == "interactive"
        assert settings.scroll_timeout == 0.8
        assert settings.submit_base_url is None
        assert settings.max_retries == 3

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REGFORMS_STORAGE_BACKEND", "FILE")
        monkeypatch.setenv("REGFORMS_EXECUTION_CONTEXT", "non-interactive")
        monkeypatch.setenv("REGFORMS_LOG_LEVEL", "debug")

        settings = FormSettings()

        assert settings.storage_backend == "file"
        assert settings.execution_context == "non_interactive"
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("storage_backend", "redis"),
            ("execution_context", "browser"),
            ("log_level", "LOUD"),
            ("log_format", "xml"),
        ],
    )
    def test_invalid_values_rejected(self, field: str, value: str) -> None:
        with pytest.raises(ValidationError):
            FormSettings(**{field: value})

    def test_scroll_timeout_bounds(self) -> None:
        with pytest.raises(ValidationError):
            FormSettings(scroll_timeout=-1)


class TestFormSettingsLoad:
    def test_no_project_file(self, tmp_path: Path) -> None:
        settings = FormSettings.load(tmp_path)
        assert settings.storage_backend == "memory"

    def test_project_file_values(self, tmp_path: Path) -> None:
        _write_project_file(
            tmp_path,
            """
forms:
  storage_backend: file
  storage_dir: ./sessions
  scroll_timeout: 0.5
  unknown_key: ignored
""",
        )

        settings = FormSettings.load(tmp_path)

        assert settings.storage_backend == "file"
        assert settings.storage_dir == "./sessions"
        assert settings.scroll_timeout == 0.5

    def test_environment_beats_project_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_project_file(tmp_path, "forms:\n  storage_backend: file\n")
        monkeypatch.setenv("REGFORMS_STORAGE_BACKEND", "none")

        settings = FormSettings.load(tmp_path)
        assert settings.storage_backend == "none"

    def test_invalid_project_file_values_fall_back(self, tmp_path: Path) -> None:
        _write_project_file(tmp_path, "forms:\n  storage_backend: redis\n")

        settings = FormSettings.load(tmp_path)
        assert settings.storage_backend == "memory"

    def test_malformed_yaml_falls_back(self, tmp_path: Path) -> None:
        _write_project_file(tmp_path, "forms: [unclosed\n")

        settings = FormSettings.load(tmp_path)
        assert settings.storage_backend == "memory"

    def test_forms_section_must_be_mapping(self, tmp_path: Path) -> None:
        _write_project_file(tmp_path, "forms: just-a-string\n")

        settings = FormSettings.load(tmp_path)
        assert settings.storage_backend == "memory"

    def test_storage_dir_resolved(self, tmp_path: Path) -> None:
        settings = FormSettings(storage_dir="./sessions")
        assert settings.get_storage_dir(tmp_path) == (tmp_path / "sessions").resolve()


class TestGetSettings:
    def test_cached_until_reload(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings(reload=True)
        assert get_settings() is first

        monkeypatch.setenv("REGFORMS_LOG_FORMAT", "json")
        assert get_settings().log_format == first.log_format
        assert get_settings(reload=True).log_format == "json"
