"""Tests for settings storage."""

from __future__ import annotations

from pathlib import Path

import pytest

from clipmap.runtime_config import DEFAULT_PROXY_PREFIX
from clipmap.state_store import (
    AppSettings,
    load_settings,
    load_settings_with_notice,
    save_settings,
)


def test_settings_roundtrip(tmp_path) -> None:
    path = tmp_path / "settings.json"
    settings = AppSettings(
        playback_backend="fake",
        catalog_source="https://sheets.example/export.tsv",
        category="city",
        proxy_prefix="",
        log_level="DEBUG",
    )

    save_settings(path, settings)
    assert load_settings(path) == settings
    assert list(tmp_path.glob("*.tmp")) == []


def test_missing_file_defaults_without_notice(tmp_path) -> None:
    settings, notice = load_settings_with_notice(tmp_path / "missing.json")
    assert settings == AppSettings()
    assert notice is None


def test_corrupt_json_defaults_with_notice(tmp_path, caplog) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{bad json", encoding="utf-8")

    settings, notice = load_settings_with_notice(path)
    assert settings == AppSettings()
    assert notice is not None and "corrupt" in notice
    assert any("invalid JSON" in record.message for record in caplog.records)


def test_non_object_json_defaults_with_notice(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]", encoding="utf-8")

    settings, notice = load_settings_with_notice(path)
    assert settings == AppSettings()
    assert notice is not None


def test_wrong_types_fall_back_per_field(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        '{"playback_backend": 3, "catalog_source": "  ", "category": "night",'
        ' "proxy_prefix": null}',
        encoding="utf-8",
    )

    settings = load_settings(path)
    assert settings.playback_backend == AppSettings().playback_backend
    assert settings.catalog_source is None
    assert settings.category == "night"
    assert settings.proxy_prefix == DEFAULT_PROXY_PREFIX


def test_save_replace_failure_keeps_previous_file(tmp_path, monkeypatch) -> None:
    path = tmp_path / "settings.json"
    original = AppSettings(playback_backend="fake", category="city")
    save_settings(path, original)

    def fail_replace(self: Path, target: Path) -> None:
        del target
        if self.suffix == ".tmp":
            raise OSError("replace failed")
        return None

    monkeypatch.setattr(Path, "replace", fail_replace)
    with pytest.raises(OSError):
        save_settings(path, AppSettings(playback_backend="vlc"))

    assert load_settings(path) == original
    assert list(tmp_path.glob("*.tmp")) == []
