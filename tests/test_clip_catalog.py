"""Tests for catalog parsing, loading and list helpers."""

from __future__ import annotations

import asyncio
import math

import httpx
import pytest

from clipmap.services.clip_catalog import (
    CatalogError,
    ClipRecord,
    clip_timestamp,
    filter_by_category,
    format_clip_meta,
    has_location,
    latest_clips,
    load_catalog,
    parse_catalog,
    search_clips,
    unique_categories,
)

CATALOG = (
    "45,1\t7,6\t03/04/2024\t18:30\t12.5\tMarket bells\tSunday market\t"
    "https://service/file/d/AAA/view\tcity, bells\n"
    "\n"
    "44.9\t7.7\t11/12/2023\t\t60\tRiver\tFlowing water\t"
    "https://cdn.example/river.mp3\tnature\n"
    "x\ty\t\t\t\tUntitled\n"
)


def _run(coro):
    return asyncio.run(coro)


def _clip(title: str, date: str = "", time: str = "", **overrides) -> ClipRecord:
    fields = dict(
        lat=0.0,
        lon=0.0,
        date=date,
        time=time,
        duration_s=1.0,
        title=title,
        description="",
        raw_link="",
        categories=(),
    )
    fields.update(overrides)
    return ClipRecord(**fields)


def test_parse_catalog_reads_rows_and_skips_blank_lines() -> None:
    clips = parse_catalog(CATALOG)

    assert [clip.title for clip in clips] == ["Market bells", "River", "Untitled"]
    first = clips[0]
    assert first.lat == pytest.approx(45.1)
    assert first.lon == pytest.approx(7.6)
    assert first.duration_s == pytest.approx(12.5)
    assert first.categories == ("city", "bells")
    assert first.raw_link == "https://service/file/d/AAA/view"


def test_parse_catalog_degrades_bad_fields() -> None:
    clips = parse_catalog(CATALOG)
    broken = clips[2]

    assert math.isnan(broken.lat)
    assert math.isnan(broken.duration_s)
    assert broken.raw_link == ""
    assert broken.categories == ()
    assert has_location(broken) is False
    assert has_location(clips[0]) is True


def test_parse_catalog_reads_leading_numbers() -> None:
    clips = parse_catalog("43.6abc\t1,5°\t\t\t12s\tA\n-0.5\t.25\t\t\t12,5\tB\n")

    assert clips[0].lat == pytest.approx(43.6)
    assert clips[0].lon == pytest.approx(1.5)
    assert clips[0].duration_s == pytest.approx(12.0)
    assert clips[1].lat == pytest.approx(-0.5)
    assert clips[1].lon == pytest.approx(0.25)
    # Durations take no decimal comma: the number stops at the comma.
    assert clips[1].duration_s == pytest.approx(12.0)


def test_parse_catalog_handles_crlf() -> None:
    clips = parse_catalog("1\t2\t01/01/2024\t10:00\t3\tA\tB\tC\tD\r\n")
    assert clips[0].categories == ("D",)


def test_filter_by_category_is_case_insensitive() -> None:
    clips = parse_catalog(CATALOG)

    assert [c.title for c in filter_by_category(clips, "CITY")] == ["Market bells"]
    assert len(filter_by_category(clips, "all")) == 3
    assert len(filter_by_category(clips, "  ")) == 3
    assert filter_by_category(clips, "missing") == []


def test_search_matches_title_description_and_date() -> None:
    clips = parse_catalog(CATALOG)

    assert [c.title for c in search_clips(clips, "bells")] == ["Market bells"]
    assert [c.title for c in search_clips(clips, "flowing")] == ["River"]
    assert [c.title for c in search_clips(clips, "12/2023")] == ["River"]
    assert len(search_clips(clips, "")) == 3


def test_clip_timestamp_defaults_time_to_midnight() -> None:
    stamp = clip_timestamp(_clip("a", date="11/12/2023"))
    assert stamp is not None
    assert (stamp.hour, stamp.minute) == (0, 0)
    assert clip_timestamp(_clip("b", date="not a date")) is None


def test_latest_clips_sorts_newest_first_with_undated_last() -> None:
    clips = [
        _clip("old", date="01/01/2020"),
        _clip("undated"),
        _clip("new", date="01/01/2024", time="08:00"),
        _clip("newer", date="01/01/2024", time="09:00"),
    ]

    assert [c.title for c in latest_clips(clips, 3)] == ["newer", "new", "old"]
    assert [c.title for c in latest_clips(clips, 10)][-1] == "undated"
    assert latest_clips(clips, 0) == []


def test_unique_categories_preserves_catalog_order() -> None:
    clips = [
        _clip("a", categories=("city", "bells")),
        _clip("b", categories=("city", "nature", "night")),
    ]

    assert unique_categories(clips) == ["city", "bells", "nature"]
    assert unique_categories(clips, limit=10) == ["city", "bells", "nature", "night"]
    assert unique_categories(clips, limit=0) == []


def test_format_clip_meta_drops_empty_parts() -> None:
    clip = _clip("a", date="03/04/2024", time="18:30", duration_s=12.5)

    assert format_clip_meta(clip) == "03/04/2024 • 18:30 • 12.5s"
    assert format_clip_meta(clip, include_time=False) == "03/04/2024 • 12.5s"
    assert format_clip_meta(_clip("b", duration_s=math.nan)) == ""


def test_load_catalog_from_file(tmp_path) -> None:
    path = tmp_path / "catalog.tsv"
    path.write_text(CATALOG, encoding="utf-8")

    clips = _run(load_catalog(str(path)))

    assert len(clips) == 3


def test_load_catalog_missing_file_raises_catalog_error(tmp_path) -> None:
    with pytest.raises(CatalogError):
        _run(load_catalog(str(tmp_path / "missing.tsv")))


def test_load_catalog_from_url() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, text=CATALOG)

    async def run() -> list[ClipRecord]:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await load_catalog("https://sheets.example/export.tsv", client=client)

    clips = _run(run())

    assert requested == ["https://sheets.example/export.tsv"]
    assert [clip.title for clip in clips][:2] == ["Market bells", "River"]


def test_load_catalog_http_error_raises_catalog_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    async def run() -> None:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await load_catalog("https://sheets.example/export.tsv", client=client)

    with pytest.raises(CatalogError):
        _run(run())


def test_load_catalog_transport_error_raises_catalog_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    async def run() -> None:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await load_catalog("https://sheets.example/export.tsv", client=client)

    with pytest.raises(CatalogError):
        _run(run())
