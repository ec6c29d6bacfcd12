"""Clip catalog ingestion and list helpers.

The catalog is a tab-separated export with one clip per row:
``lat, lon, date, time, duration, title, description, link, categories``.
Numbers are read from their leading digits, so ``"12s"`` is 12 seconds, and
coordinates also accept a decimal comma. Malformed fields degrade to
``nan``/empty values instead of raising, so one bad row never hides the rest
of the catalog.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import httpx

from clipmap.utils.async_utils import run_blocking
from clipmap.utils.time_format import format_duration_s

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d/%m/%Y %H:%M"
DEFAULT_FETCH_TIMEOUT_S = 10.0
META_SEPARATOR = " • "
_LEADING_FLOAT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class CatalogError(Exception):
    """Catalog source could not be read or fetched."""


@dataclass(frozen=True)
class ClipRecord:
    """One geolocated audio clip as exported by the catalog sheet."""

    lat: float
    lon: float
    date: str
    time: str
    duration_s: float
    title: str
    description: str
    raw_link: str
    categories: tuple[str, ...] = ()


def parse_catalog(text: str) -> list[ClipRecord]:
    """Parse tab-separated catalog text into clip records."""
    clips: list[ClipRecord] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        fields = line.rstrip("\r").split("\t")
        fields += [""] * (9 - len(fields))
        lat, lon, date, time_, duration, title, description, link, categories = (
            fields[:9]
        )
        clips.append(
            ClipRecord(
                lat=_parse_float(lat, decimal_comma=True),
                lon=_parse_float(lon, decimal_comma=True),
                date=date.strip(),
                time=time_.strip(),
                duration_s=_parse_float(duration),
                title=title.strip(),
                description=description.strip(),
                raw_link=link.strip(),
                categories=split_categories(categories),
            )
        )
    return clips


def split_categories(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _parse_float(value: str, *, decimal_comma: bool = False) -> float:
    """Parse the leading number of `value` (``"12s"`` is 12); otherwise ``nan``."""
    text = value.strip()
    if decimal_comma:
        text = text.replace(",", ".", 1)
    match = _LEADING_FLOAT_RE.match(text)
    if match is None:
        return math.nan
    return float(match.group(0))


async def load_catalog(
    source: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT_S,
) -> list[ClipRecord]:
    """Load a catalog from a local path or an ``http(s)`` URL."""
    if source.startswith(("http://", "https://")):
        text = await fetch_catalog_text(source, client=client, timeout=timeout)
    else:
        try:
            text = await run_blocking(Path(source).read_text, encoding="utf-8")
        except OSError as exc:
            raise CatalogError(f"Cannot read catalog file {source}: {exc}") from exc
    clips = parse_catalog(text)
    logger.info("Loaded %d clips", len(clips), extra={"source": source})
    return clips


async def fetch_catalog_text(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT_S,
) -> str:
    try:
        if client is not None:
            resp = await client.get(url)
        else:
            async with httpx.AsyncClient(
                timeout=timeout, follow_redirects=True
            ) as owned:
                resp = await owned.get(url)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        raise CatalogError(f"Cannot fetch catalog from {url}: {exc}") from exc
    return resp.text


def filter_by_category(clips: Iterable[ClipRecord], tag: str) -> list[ClipRecord]:
    """Keep clips tagged `tag` (case-insensitive); blank or ``all`` keeps all."""
    wanted = tag.strip().lower()
    if not wanted or wanted == "all":
        return list(clips)
    return [
        clip
        for clip in clips
        if any(category.lower() == wanted for category in clip.categories)
    ]


def search_clips(clips: Iterable[ClipRecord], query: str) -> list[ClipRecord]:
    """Substring search over title, description and date."""
    needle = query.strip().lower()
    if not needle:
        return list(clips)
    return [
        clip
        for clip in clips
        if needle in clip.title.lower()
        or needle in clip.description.lower()
        or needle in clip.date.lower()
    ]


def clip_timestamp(clip: ClipRecord) -> datetime | None:
    try:
        return datetime.strptime(f"{clip.date} {clip.time or '00:00'}", DATE_FORMAT)
    except ValueError:
        return None


def latest_clips(clips: Sequence[ClipRecord], count: int = 3) -> list[ClipRecord]:
    """Return the `count` most recent clips, newest first; undated clips last."""
    dated: list[tuple[datetime, ClipRecord]] = []
    undated: list[ClipRecord] = []
    for clip in clips:
        stamp = clip_timestamp(clip)
        if stamp is None:
            undated.append(clip)
        else:
            dated.append((stamp, clip))
    dated.sort(key=lambda pair: pair[0], reverse=True)
    ordered = [clip for _stamp, clip in dated] + undated
    return ordered[: max(0, count)]


def unique_categories(clips: Iterable[ClipRecord], limit: int = 3) -> list[str]:
    """First `limit` distinct categories in catalog order."""
    seen: list[str] = []
    if limit <= 0:
        return seen
    for clip in clips:
        for category in clip.categories:
            if category not in seen:
                seen.append(category)
            if len(seen) >= limit:
                return seen
    return seen


def has_location(clip: ClipRecord) -> bool:
    return math.isfinite(clip.lat) and math.isfinite(clip.lon)


def format_clip_meta(clip: ClipRecord, *, include_time: bool = True) -> str:
    """Render ``date • time • 12.3s`` with empty parts dropped."""
    parts = [clip.date]
    if include_time:
        parts.append(clip.time)
    if math.isfinite(clip.duration_s) and clip.duration_s > 0:
        parts.append(format_duration_s(clip.duration_s))
    return META_SEPARATOR.join(part for part in parts if part)
