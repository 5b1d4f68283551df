from __future__ import annotations

import pytest

from ol_link_preview_core.errors import UrlParseError
from ol_link_preview_core.models import FetchedDocument, ScrapeRequest
from ol_link_preview_core.scanner import CanonicalRedirect, FragmentRedirect, ScanResult, scan


def _scan(
    html: str,
    *,
    url: str = "https://ex.com/p",
    budget: int = 0,
    escaped_fragment_url: str | None = None,
) -> ScanResult:
    doc = FetchedDocument(body=html.encode("utf-8"), content_type="text/html; charset=utf-8", url=url)
    req = ScrapeRequest(
        url=url,
        redirect_budget=budget,
        user_agent="test",
        escaped_fragment_url=escaped_fragment_url,
    )
    return scan(doc, req)


def test_defaults_are_seeded_from_url() -> None:
    res = _scan("<html><head></head><body>nothing</body></html>")
    p = res.preview
    assert res.redirect is None
    assert p.icon == "https://ex.com/favicon.ico"
    assert p.name == "ex.com"
    assert p.link == "https://ex.com/p"
    assert p.title == ""
    assert p.description == ""
    assert p.images == []


def test_open_graph_stops_early_after_head() -> None:
    html = """
    <html><head>
      <meta property="og:title" content="T">
      <meta property="og:description" content="D">
      <meta property="og:image" content="https://cdn.ex.com/i.png">
    </head>
    <body>
      <meta property="og:site_name" content="LATE">
      <img src="/late.png">
    </body></html>
    """
    p = _scan(html).preview
    assert p.title == "T"
    assert p.description == "D"
    assert p.images == ["https://cdn.ex.com/i.png"]
    # Scanning stopped at </head>.
    assert p.name == "ex.com"


def test_no_early_stop_before_head_closes() -> None:
    html = """
    <head>
      <meta property="og:title" content="T">
      <meta property="og:description" content="D">
      <meta property="og:image" content="/i.png">
      <meta property="og:site_name" content="Site">
    </head>
    """
    p = _scan(html).preview
    assert p.name == "Site"
    assert p.images == ["https://ex.com/i.png"]


def test_title_tag_before_og_title_wins() -> None:
    html = '<head><title>Hello</title><meta property="og:title" content="OG"></head>'
    assert _scan(html).preview.title == "Hello"


def test_og_title_before_title_tag_wins() -> None:
    html = '<head><meta property="og:title" content="OG"><title>Hello</title></head>'
    assert _scan(html).preview.title == "OG"


def test_title_whitespace_is_collapsed_and_empty_title_ignored() -> None:
    assert _scan("<head><title>\n  Hello \n World </title></head>").preview.title == "Hello World"
    html = '<head><title></title><meta property="og:title" content="OG"></head>'
    assert _scan(html).preview.title == "OG"


def test_og_description_overrides_generic_description() -> None:
    html = '<head><meta name="description" content="generic"><meta property="og:description" content="og"></head>'
    assert _scan(html).preview.description == "og"


def test_generic_description_does_not_override_og() -> None:
    html = (
        '<head><meta property="og:description" content="og">'
        '<meta name="description" content="generic">'
        '<meta name="description" content="second"></head>'
    )
    assert _scan(html).preview.description == "og"


def test_first_generic_description_wins() -> None:
    html = '<head><meta name="description" content="first"><meta name="Description" content="second"></head>'
    assert _scan(html).preview.description == "first"


def test_meta_keys_and_property_are_matched_case_insensitively() -> None:
    html = '<head><meta PROPERTY=" OG:Type " content="article"><meta property="og:site_name" content="Ex"></head>'
    p = _scan(html).preview
    assert p.type == "article"
    assert p.name == "Ex"


def test_meta_without_exactly_two_attributes_is_ignored() -> None:
    html = (
        '<head><meta charset="utf-8">'
        '<meta property="og:title" content="X" data-extra="1">'
        '<meta property="og:description" content="D"></head>'
    )
    p = _scan(html).preview
    assert p.title == ""
    assert p.description == "D"


def test_og_url_overrides_link() -> None:
    html = '<head><meta property="og:url" content="https://ex.com/share"></head>'
    assert _scan(html).preview.link == "https://ex.com/share"


def test_icon_is_made_absolute() -> None:
    html = '<head><link rel="Shortcut Icon" href="/static/fav.png"></head>'
    assert _scan(html).preview.icon == "https://ex.com/static/fav.png"


def test_img_sources_are_collected_and_normalized() -> None:
    html = '<body><img src="/a.png"><img src="https://cdn.x/y.png"><img src="b.png"><img alt="x"></body>'
    assert _scan(html).preview.images == [
        "https://ex.com/a.png",
        "https://cdn.x/y.png",
        "https://ex.com/b.png",
    ]


def test_og_image_replaces_images_and_stops_img_accumulation() -> None:
    html = (
        '<head></head><body><img src="/a.png">'
        '<meta property="og:image" content="/og.png">'
        '<img src="/b.png"></body>'
    )
    assert _scan(html).preview.images == ["https://ex.com/og.png"]


def test_canonical_redirect_is_signalled_after_head() -> None:
    html = '<head><link rel="canonical" href="https://other.example/x"><title>Here</title></head><body></body>'
    res = _scan(html, budget=1)
    assert isinstance(res.redirect, CanonicalRedirect)
    assert res.redirect.target == "https://other.example/x"


def test_relative_canonical_is_made_absolute() -> None:
    res = _scan('<head><link rel="canonical" href="/x"></head>', budget=1)
    assert isinstance(res.redirect, CanonicalRedirect)
    assert res.redirect.target == "https://ex.com/x"


def test_canonical_equal_to_fetched_url_is_not_a_redirect() -> None:
    html = '<head><link rel="canonical" href="https://ex.com/p"></head>'
    assert _scan(html, budget=3).redirect is None


def test_og_url_does_not_mask_canonical() -> None:
    html = (
        '<head><meta property="og:url" content="https://ex.com/canon">'
        '<link rel="canonical" href="https://ex.com/canon"></head>'
    )
    res = _scan(html, budget=1)
    assert isinstance(res.redirect, CanonicalRedirect)
    assert res.redirect.target == "https://ex.com/canon"


def test_canonical_ignored_without_budget() -> None:
    html = '<head><link rel="canonical" href="https://other.example/x"><title>Here</title></head>'
    res = _scan(html, budget=0)
    assert res.redirect is None
    assert res.preview.title == "Here"
    assert res.preview.link == "https://ex.com/p"


def test_fragment_marker_signals_redirect() -> None:
    res = _scan('<head><meta name="fragment" content="!"></head>', url="https://ex.com/app", budget=1)
    assert isinstance(res.redirect, FragmentRedirect)


def test_fragment_marker_ignored_once_escaped_url_is_set() -> None:
    res = _scan(
        '<head><meta name="fragment" content="!"></head>',
        url="https://ex.com/app",
        budget=1,
        escaped_fragment_url="https://ex.com/app?_escaped_fragment_=",
    )
    assert res.redirect is None


def test_canonical_takes_priority_over_fragment() -> None:
    html = '<head><meta name="fragment" content="!"><link rel="canonical" href="/x"></head>'
    res = _scan(html, budget=1)
    assert isinstance(res.redirect, CanonicalRedirect)


def test_body_tag_counts_as_head_passed() -> None:
    html = '<link rel="canonical" href="/x"><body>'
    res = _scan(html, budget=1)
    assert res.redirect is not None


def test_malformed_img_src_aborts_scan() -> None:
    with pytest.raises(UrlParseError):
        _scan('<body><img src="http://[::1"></body>')


def test_malformed_og_image_aborts_scan() -> None:
    with pytest.raises(UrlParseError):
        _scan('<head><meta property="og:image" content="/a%zz.png"></head>')


def test_raw_percent_in_img_query_does_not_abort_scan() -> None:
    html = '<body><img src="/pixel.gif?ratio=50%"><img src="/a.png"></body>'
    assert _scan(html).preview.images == [
        "https://ex.com/pixel.gif?ratio=50%",
        "https://ex.com/a.png",
    ]
