#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for BooruWiki tests.
Uses an in-memory fake booru so no network access is needed.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Sequence
from urllib.parse import quote

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from booruwiki.core.http import get_api_factory
from booruwiki.main import create_app
from booruwiki.schemas import HostName, MediaAssetInfo, MediaAssetVariant, PostInfo, TagInfo
from booruwiki.services.booru_api import BooruApi


# -----------------------------------------------------------------------------

ORIGIN = "https://booru.test"


class FakeBooruApi(BooruApi):
    """Danbooru-like booru backed by dicts; records every lookup it receives."""

    host = HostName.DANBOORU
    supports_galleries = True
    supports_pools = True
    wiki_line_separator = "\r\n"

    def __init__(
        self,
        posts: dict[int, str] | None = None,
        assets: dict[int, list[str]] | None = None,
        tags: dict[str, str] | None = None,
        wiki_pages: dict[str, str] | None = None,
    ):
        self.origin = ORIGIN
        self._owns_client = False
        self.posts = posts or {}
        self.assets = assets or {}
        self.tags = tags or {}
        self.wiki_pages = wiki_pages or {}
        self.calls: list[tuple[str, list]] = []
        self.fail_posts: Exception | None = None
        self.fail_tags: Exception | None = None

    def get_post_url(self, post_id: int) -> str:
        return f"{ORIGIN}/posts/{post_id}"

    def get_media_asset_url(self, asset_id: int) -> str:
        return f"{ORIGIN}/media_assets/{asset_id}"

    def get_pool_url(self, pool_id: int) -> str:
        return f"{ORIGIN}/pools/{pool_id}"

    def get_wiki_url(self, page_id: str) -> str:
        return f"{ORIGIN}/wiki_pages/{quote(page_id, safe='')}"

    def get_query_url(self, tags: Sequence[str]) -> str:
        return f"{ORIGIN}/posts?tags=" + "+".join(quote(t, safe="") for t in tags)

    def wiki_page_from_url(self, path: str) -> str | None:
        prefix = "/wiki_pages/"
        return path[len(prefix):] if path.startswith(prefix) else None

    async def get_posts(self, ids, only=("id", "thumbnail_url")):
        self.calls.append(("posts", list(ids)))
        if self.fail_posts:
            raise self.fail_posts
        return [PostInfo(id=i, thumbnail_url=self.posts[i]) for i in ids if i in self.posts]

    async def get_media_assets(self, ids, only=("id", "variants")):
        self.calls.append(("assets", list(ids)))
        return [
            MediaAssetInfo(id=i, variants=[MediaAssetVariant(url=url) for url in self.assets[i]])
            for i in ids if i in self.assets
        ]

    async def get_multiple_tag_infos(self, names, only=()):
        self.calls.append(("tags", list(names)))
        if self.fail_tags:
            raise self.fail_tags
        return {
            name: TagInfo(title=name, type=self.tags[name])
            for name in names if name in self.tags
        }

    async def get_wiki_page(self, title: str) -> str | None:
        self.calls.append(("wiki", [title]))
        return self.wiki_pages.get(title)


class FakeGelbooruApi(FakeBooruApi):
    """Same fake without galleries or pools."""

    host = HostName.GELBOORU
    supports_galleries = False
    supports_pools = False


# -----------------------------------------------------------------------------

@pytest.fixture
def api() -> FakeBooruApi:
    return FakeBooruApi(
        posts={1: "https://cdn.test/1.jpg", 2: "https://cdn.test/2.jpg", 3: "https://cdn.test/3.jpg"},
        assets={10: ["https://cdn.test/a10_180.jpg", "https://cdn.test/a10_360.jpg", "https://cdn.test/a10.png"],
                11: ["https://cdn.test/a11.jpg"]},
        tags={"hatsune_miku": "character", "vocaloid": "copyright"},
    )


@pytest.fixture
def gelbooru_api() -> FakeGelbooruApi:
    return FakeGelbooruApi(posts={1: "https://cdn.test/1.jpg"})


@pytest_asyncio.fixture(scope="function")
async def client(api):
    """HTTP test client whose booru lookups all go to the ``api`` fixture."""
    app = create_app()
    app.dependency_overrides[get_api_factory] = lambda: (lambda host: api)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
