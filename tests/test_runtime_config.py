"""Tests for runtime configuration helpers."""

from __future__ import annotations

from clipmap.runtime_config import (
    DEFAULT_PROXY_PREFIX,
    normalize_backend_name,
    normalize_proxy_prefix,
    resolve_backend_name,
    resolve_log_level,
)


def test_resolve_log_level_quiet_wins() -> None:
    assert resolve_log_level(verbose=True, quiet=True) == "WARNING"
    assert resolve_log_level(verbose=True, quiet=False) == "DEBUG"
    assert resolve_log_level(verbose=False, quiet=False) == "INFO"


def test_normalize_backend_name() -> None:
    assert normalize_backend_name(" VLC ") == "vlc"
    assert normalize_backend_name("fake") == "fake"
    assert normalize_backend_name("mpv") is None
    assert normalize_backend_name(None) is None


def test_resolve_backend_name_precedence() -> None:
    assert resolve_backend_name("fake", "vlc") == "fake"
    assert resolve_backend_name(None, "vlc") == "vlc"
    assert resolve_backend_name("bogus", "also-bogus") == "fake"


def test_normalize_proxy_prefix() -> None:
    assert normalize_proxy_prefix(None) == DEFAULT_PROXY_PREFIX
    assert normalize_proxy_prefix("") == ""
    assert normalize_proxy_prefix(" https://p/?u= ") == "https://p/?u="
