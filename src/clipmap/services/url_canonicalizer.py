"""Rewrite shared-storage links into directly fetchable media URLs."""

from __future__ import annotations

import re

from clipmap.runtime_config import DEFAULT_PROXY_PREFIX

DIRECT_DOWNLOAD_MARKER = "uc?export=download"
DIRECT_DOWNLOAD_BASE = "https://drive.google.com/uc?export=download&id="
_SHARE_ID_RE = re.compile(r"/d/([A-Za-z0-9_-]+)(?:/|$)")


def extract_share_id(url: str) -> str | None:
    """Return the storage-object id from a ``/d/<id>`` share path, if any."""
    match = _SHARE_ID_RE.search(url)
    if match is None:
        return None
    return match.group(1)


def canonicalize(url: str, *, proxy_prefix: str = DEFAULT_PROXY_PREFIX) -> str:
    """Map a share-style link to a direct-download URL behind a CORS proxy.

    Already-direct links and links without an extractable id come back
    unchanged, which makes the function idempotent.
    """
    if not url:
        return url
    if DIRECT_DOWNLOAD_MARKER in url:
        return url
    share_id = extract_share_id(url)
    if share_id is None:
        return url
    return f"{proxy_prefix}{DIRECT_DOWNLOAD_BASE}{share_id}"
