#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for [[wiki link]] resolution."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from booruwiki.services.booru_api import BooruApiError
from booruwiki.services.references import normalize_page_id, resolve_wiki_links
from booruwiki.services.text import escape_html


# ── Page id normalisation ─────────────────────────────────────────────────────

def test_normalize_page_id():
    assert normalize_page_id("Hatsune Miku") == "hatsune_miku"


def test_normalize_page_id_unescapes():
    assert normalize_page_id(escape_html("Rock & Roll")) == "rock_&_roll"


# ── Display names ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_plain_wiki_link(api):
    html = await resolve_wiki_links("see [[Hatsune Miku]]", api)
    assert html == (
        'see <a class="wiki-link" data-page="hatsune_miku" data-type="character" '
        'href="https://booru.test/wiki_pages/hatsune_miku">Hatsune Miku</a>'
    )


@pytest.mark.asyncio
async def test_explicit_display_name(api):
    html = await resolve_wiki_links("[[vocaloid|the series]]", api)
    assert 'data-page="vocaloid"' in html
    assert ">the series</a>" in html


@pytest.mark.asyncio
async def test_empty_display_strips_qualifier(api):
    html = await resolve_wiki_links("[[Saber (Fate)|]]", api)
    assert ">Saber</a>" in html
    assert 'data-page="saber_(fate)"' in html


@pytest.mark.asyncio
async def test_qualifier_kept_without_pipe(api):
    html = await resolve_wiki_links("[[Saber (Fate)]]", api)
    assert ">Saber (Fate)</a>" in html


@pytest.mark.asyncio
async def test_page_id_is_escaped_in_attribute(api):
    html = await resolve_wiki_links(escape_html('[[a "quoted" page]]'), api)
    assert 'data-page="a_&quot;quoted&quot;_page"' in html


# ── Tag metadata lookup ───────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_single_batched_tag_lookup_for_distinct_pages(api):
    await resolve_wiki_links("[[Vocaloid]] [[vocaloid]] [[Hatsune Miku]]", api)
    assert api.calls == [("tags", ["vocaloid", "hatsune_miku"])]


@pytest.mark.asyncio
async def test_unknown_page_renders_untyped(api):
    html = await resolve_wiki_links("[[unknown tag]]", api)
    assert "data-type" not in html
    assert 'data-page="unknown_tag"' in html


@pytest.mark.asyncio
async def test_lookup_skipped_above_limit(api):
    text = " ".join(f"[[tag {i}]]" for i in range(5))
    html = await resolve_wiki_links(text, api, lookup_limit=4)
    assert api.calls == []
    assert html.count('class="wiki-link"') == 5


@pytest.mark.asyncio
async def test_lookup_failure_degrades_to_untyped_links(api, caplog):
    api.fail_tags = BooruApiError("HTTP Error 503: Service Unavailable", status=503)
    html = await resolve_wiki_links("[[Hatsune Miku]]", api)
    assert 'class="wiki-link"' in html
    assert "data-type" not in html
    assert "Tag lookup" in caplog.text


@pytest.mark.asyncio
async def test_no_links_no_lookup(api):
    assert await resolve_wiki_links("nothing here", api) == "nothing here"
    assert api.calls == []
