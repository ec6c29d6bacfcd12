"""JSON persistence for user-facing app settings.

The store is intentionally tolerant of invalid/missing values so upgrades and
partial/corrupt writes degrade to safe defaults instead of aborting startup.
Playback position is never stored.
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import suppress
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any
from uuid import uuid4

from .runtime_config import DEFAULT_BACKEND, DEFAULT_PROXY_PREFIX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppSettings:
    """Persisted settings loaded at startup and updated when flags override them."""

    playback_backend: str = DEFAULT_BACKEND
    catalog_source: str | None = None
    category: str = ""
    proxy_prefix: str = DEFAULT_PROXY_PREFIX
    log_level: str = "INFO"


def _coerce_settings(data: dict[str, Any]) -> AppSettings:
    """Coerce an untyped JSON object into `AppSettings` with safe defaults."""

    def _str_or_default(value: Any, default: str) -> str:
        if isinstance(value, str):
            return value
        return default

    catalog_source = data.get("catalog_source")
    return AppSettings(
        playback_backend=_str_or_default(
            data.get("playback_backend"), DEFAULT_BACKEND
        ),
        catalog_source=catalog_source
        if isinstance(catalog_source, str) and catalog_source.strip()
        else None,
        category=_str_or_default(data.get("category"), ""),
        proxy_prefix=_str_or_default(data.get("proxy_prefix"), DEFAULT_PROXY_PREFIX),
        log_level=_str_or_default(data.get("log_level"), "INFO"),
    )


def load_settings_with_notice(path: Path) -> tuple[AppSettings, str | None]:
    """Load settings and return an optional user-facing notice."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("Settings file missing at %s; using defaults.", path)
        return AppSettings(), None
    except OSError as exc:
        logger.warning(
            "Failed to read settings file %s: %s; using defaults.", path, exc
        )
        return (
            AppSettings(),
            "Settings were reset to defaults.\n"
            "Likely cause: settings file is unreadable due to permissions or IO issues.\n"
            f"Next step: verify access to '{path}' and restart.",
        )

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Settings file at %s is invalid JSON; using defaults.", path)
        return (
            AppSettings(),
            "Settings were reset to defaults.\n"
            "Likely cause: settings file is corrupt or partially written.\n"
            f"Next step: remove or repair '{path}' and restart.",
        )

    if not isinstance(data, dict):
        logger.warning(
            "Settings file at %s is not a JSON object; using defaults.", path
        )
        return (
            AppSettings(),
            "Settings were reset to defaults.\n"
            "Likely cause: settings file format is invalid for this app version.\n"
            f"Next step: remove '{path}' and restart.",
        )

    return _coerce_settings(data), None


def load_settings(path: Path) -> AppSettings:
    """Load settings from disk, falling back to defaults."""
    settings, _notice = load_settings_with_notice(path)
    return settings


def save_settings(path: Path, settings: AppSettings) -> None:
    """Persist settings atomically to disk via write-then-replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
    payload = json.dumps(asdict(settings), indent=2, sort_keys=True)
    delay_s = 0.02
    try:
        for attempt in range(4):
            tmp_path.write_text(payload, encoding="utf-8")
            try:
                tmp_path.replace(path)
                return
            except OSError as exc:
                if not _is_retryable_windows_replace_error(exc) or attempt >= 3:
                    raise
                time.sleep(delay_s)
                delay_s = min(0.25, delay_s * 2.0)
    finally:
        with suppress(OSError):
            tmp_path.unlink()


def _is_retryable_windows_replace_error(exc: OSError) -> bool:
    """Return whether an atomic replace failure is likely transient on Windows."""
    winerror = getattr(exc, "winerror", None)
    if winerror in {32, 5, 2}:
        return True
    errno = getattr(exc, "errno", None)
    if errno in {13, 16}:
        return True
    text = str(exc).lower()
    return "used by another process" in text or "permission denied" in text
