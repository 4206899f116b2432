#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the HTTP API: /api/v1/render, /api/v1/wiki and /api/health."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from booruwiki.services.booru_api import BooruApiError


# ── Health ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ── Render ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_render_markup(client):
    resp = await client.post("/api/v1/render", json={"markup": "[b]hi[/b]"})
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"html": "<p><b>hi</b></p>", "host": "danbooru"}


@pytest.mark.asyncio
async def test_render_with_custom_separator(client):
    resp = await client.post("/api/v1/render", json={
        "markup": "one\r\ntwo", "line_separator": "\r\n",
    })
    assert resp.json()["html"] == "<p>one<br>two</p>"


@pytest.mark.asyncio
async def test_render_gallery(client, api):
    resp = await client.post("/api/v1/render", json={"markup": "!post #1\n!post #2"})
    assert resp.status_code == 200
    assert 'class="media-gallery"' in resp.json()["html"]
    assert api.calls == [("posts", [1, 2])]


@pytest.mark.asyncio
async def test_render_unresolved_reference_is_bad_gateway(client):
    resp = await client.post("/api/v1/render", json={"markup": "!post #404"})
    assert resp.status_code == 502
    assert "post #404" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_render_lookup_failure_is_bad_gateway(client, api):
    api.fail_posts = BooruApiError("HTTP Error 500: Internal Server Error", status=500)
    resp = await client.post("/api/v1/render", json={"markup": "!post #1"})
    assert resp.status_code == 502
    assert "HTTP Error 500" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_render_unknown_host_is_rejected(client):
    resp = await client.post("/api/v1/render", json={"markup": "x", "host": "e621"})
    assert resp.status_code == 422


# ── Wiki pages ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_wiki_page(client, api):
    api.wiki_pages["hatsune_miku"] = "h4. Hatsune Miku\r\nA [[Vocaloid]] singer."
    resp = await client.get("/api/v1/wiki/danbooru/hatsune_miku")
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["title"] == "hatsune_miku"
    assert body["html"].startswith("<h3>Hatsune Miku</h3><p>A <a class=\"wiki-link\"")


@pytest.mark.asyncio
async def test_missing_wiki_page(client):
    resp = await client.get("/api/v1/wiki/danbooru/does_not_exist")
    assert resp.status_code == 404
