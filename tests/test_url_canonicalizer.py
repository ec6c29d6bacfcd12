"""Tests for share-link canonicalization."""

from __future__ import annotations

import pytest

from clipmap.services.url_canonicalizer import (
    DIRECT_DOWNLOAD_MARKER,
    canonicalize,
    extract_share_id,
)

PROXY = "https://corsproxy.io/?"


def test_share_link_becomes_direct_download_through_proxy() -> None:
    url = canonicalize("https://service/file/d/ABC123/view")
    assert url == f"{PROXY}https://drive.google.com/uc?export=download&id=ABC123"


def test_share_id_at_end_of_string() -> None:
    assert extract_share_id("https://service/file/d/x_Y-9") == "x_Y-9"
    assert "id=x_Y-9" in canonicalize("https://service/file/d/x_Y-9")


def test_plain_media_url_is_unchanged() -> None:
    assert canonicalize("https://cdn.example/clip.mp3") == "https://cdn.example/clip.mp3"


def test_direct_download_form_is_unchanged() -> None:
    url = "https://drive.google.com/uc?export=download&id=ABC123"
    assert canonicalize(url) == url


def test_empty_input_is_returned_as_is() -> None:
    assert canonicalize("") == ""


def test_custom_proxy_prefix_and_disabled_proxy() -> None:
    share = "https://service/file/d/ABC123/view"
    assert canonicalize(share, proxy_prefix="").startswith("https://drive.google.com/")
    assert canonicalize(share, proxy_prefix="https://p/?u=").startswith(
        "https://p/?u=https://drive.google.com/"
    )


def test_segment_must_be_a_full_path_component() -> None:
    assert extract_share_id("https://service/d/ABC123.mp3") is None
    assert canonicalize("https://service/d/ABC123.mp3") == (
        "https://service/d/ABC123.mp3"
    )


@pytest.mark.parametrize(
    "url",
    [
        "https://service/file/d/ABC123/view",
        "https://service/file/d/ABC123",
        "https://cdn.example/clip.mp3",
        "",
        "not a url at all",
        "/d//",
    ],
)
def test_canonicalize_is_idempotent(url: str) -> None:
    once = canonicalize(url)
    assert canonicalize(once) == once


def test_rewritten_urls_carry_the_direct_marker() -> None:
    assert DIRECT_DOWNLOAD_MARKER in canonicalize("https://x/d/abc/")
