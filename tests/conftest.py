"""Test configuration."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import clipmap.app as app_module  # noqa: E402
import clipmap.services.clip_catalog as clip_catalog_module  # noqa: E402


@pytest.fixture(autouse=True)
def run_blocking_inline(monkeypatch: pytest.MonkeyPatch):
    """Run blocking adapters inline in tests to avoid thread hangs in CI/sandbox."""

    async def _inline(func, /, *args, **kwargs):
        return func(*args, **kwargs)

    monkeypatch.setattr(clip_catalog_module, "run_blocking", _inline)
    monkeypatch.setattr(app_module, "run_blocking", _inline)


@pytest.fixture(autouse=True)
def ensure_current_event_loop():
    """Provide a current event loop for sync tests."""
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        yield
    finally:
        loop.close()
        asyncio.set_event_loop(None)
