#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Booru API clients
=================
The async data-lookup contract consumed by the renderer, plus httpx-backed
implementations for Danbooru and Gelbooru.

The renderer only needs:
  - batched lookups      : get_posts / get_media_assets / get_multiple_tag_infos
  - pure URL builders    : get_post_url / get_media_asset_url / get_pool_url /
                           get_wiki_url / get_query_url
  - capability flags     : supports_galleries / supports_pools
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence
from urllib.parse import parse_qs, quote, unquote, urlencode, urljoin, urlsplit

import httpx

from booruwiki.core.config import Settings, get_settings
from booruwiki.schemas import HostName, MediaAssetInfo, PostInfo, TagInfo, TagType

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class BooruApiError(Exception):
    """A lookup request failed or the host does not offer the requested data."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


# Shared by both hosts
_NUMBER_TO_TAG_TYPE: dict[int, TagType] = {
    0: "tag",
    1: "artist",
    3: "copyright",
    4: "character",
    5: "metadata",
    6: "deprecated",
}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Base client
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class BooruApi(ABC):
    host: HostName
    supports_galleries: bool = False
    supports_pools: bool = False

    # Line separator used in wiki page bodies served by this host
    wiki_line_separator: str = "\n"

    def __init__(
        self,
        origin: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.origin = origin.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "BooruApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ── Transport ─────────────────────────────────────────────────────────

    def _auth_params(self) -> dict[str, str]:
        return {}

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        url = self.get_url(path)
        log.debug("GET %s %s", url, params)
        try:
            response = await self._client.get(url, params={**params, **self._auth_params()})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise BooruApiError(
                f"HTTP Error {status}: {exc.response.reason_phrase}", status=status
            ) from exc
        except httpx.HTTPError as exc:
            raise BooruApiError(f"Request to {url} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise BooruApiError(f"Invalid JSON returned by {url}") from exc

    # ── URL builders ──────────────────────────────────────────────────────

    def get_url(self, path: str) -> str:
        return urljoin(self.origin + "/", path)

    @abstractmethod
    def get_post_url(self, post_id: int) -> str:
        ...

    @abstractmethod
    def get_media_asset_url(self, asset_id: int) -> str:
        ...

    @abstractmethod
    def get_pool_url(self, pool_id: int) -> str:
        ...

    @abstractmethod
    def get_wiki_url(self, page_id: str) -> str:
        ...

    @abstractmethod
    def get_query_url(self, tags: Sequence[str]) -> str:
        ...

    def wiki_page_from_url(self, path: str) -> str | None:
        """Return the page title if *path* points at one of this site's wiki pages."""
        return None

    # ── Lookups ───────────────────────────────────────────────────────────

    @abstractmethod
    async def get_posts(self, ids: Sequence[int], only: Sequence[str] = ("id", "thumbnail_url")) -> list[PostInfo]:
        ...

    async def get_media_assets(self, ids: Sequence[int], only: Sequence[str] = ("id", "variants")) -> list[MediaAssetInfo]:
        raise BooruApiError(f"Media assets are not available on {self.host.value}")

    @abstractmethod
    async def get_multiple_tag_infos(self, names: Sequence[str], only: Sequence[str] = ()) -> dict[str, TagInfo]:
        ...

    async def get_wiki_page(self, title: str) -> str | None:
        return None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Danbooru
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

# Our field names → Danbooru's
_DANBOORU_FIELDS = {
    "thumbnail_url": "preview_file_url",
    "title": "name",
    "type": "category",
}

_WIKI_PATH_RE = re.compile(r"^/wiki_pages/([^/?#]+)$")


def _danbooru_only(only: Sequence[str]) -> str:
    return ",".join(_DANBOORU_FIELDS.get(field, field) for field in only)


class DanbooruApi(BooruApi):
    host = HostName.DANBOORU
    supports_galleries = True
    supports_pools = True
    wiki_line_separator = "\r\n"

    def __init__(
        self,
        origin: str = "https://danbooru.donmai.us",
        username: str = "",
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        super().__init__(origin, client=client, timeout=timeout)
        self.username = username
        self.api_key = api_key

    def _auth_params(self) -> dict[str, str]:
        if self.username and self.api_key:
            return {"login": self.username, "api_key": self.api_key}
        return {}

    # ── URL builders ──────────────────────────────────────────────────────

    def get_post_url(self, post_id: int) -> str:
        return f"{self.origin}/posts/{post_id}"

    def get_media_asset_url(self, asset_id: int) -> str:
        return f"{self.origin}/media_assets/{asset_id}"

    def get_pool_url(self, pool_id: int) -> str:
        return f"{self.origin}/pools/{pool_id}"

    def get_wiki_url(self, page_id: str) -> str:
        return f"{self.origin}/wiki_pages/{quote(page_id, safe='')}"

    def get_query_url(self, tags: Sequence[str]) -> str:
        return f"{self.origin}/posts?tags=" + "+".join(quote(tag, safe="") for tag in tags)

    def wiki_page_from_url(self, path: str) -> str | None:
        parts = urlsplit(self.get_url(path))
        if parts.netloc != urlsplit(self.origin).netloc:
            return None
        if parts.path == "/wiki_pages/show_or_new":
            titles = parse_qs(parts.query).get("title")
            return titles[0] if titles else None
        m = _WIKI_PATH_RE.match(parts.path)
        if m:
            return unquote(m.group(1))
        return None

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_posts(self, ids: Sequence[int], only: Sequence[str] = ("id", "thumbnail_url")) -> list[PostInfo]:
        if not ids:
            return []
        raw_posts = await self._get_json("/posts.json", {
            "tags": "id:" + ",".join(str(i) for i in ids),
            "limit": len(ids),
            "only": _danbooru_only(only),
        })
        return [
            PostInfo(
                id=raw["id"],
                thumbnail_url=raw.get("preview_file_url") or "",
                md5=raw.get("md5"),
                source=raw.get("source"),
            )
            for raw in raw_posts
        ]

    async def get_media_assets(self, ids: Sequence[int], only: Sequence[str] = ("id", "variants")) -> list[MediaAssetInfo]:
        if not ids:
            return []
        raw_assets = await self._get_json("/media_assets.json", {
            "search[id]": ",".join(str(i) for i in ids),
            "limit": len(ids),
            "only": _danbooru_only(only),
        })
        return [MediaAssetInfo.model_validate(raw) for raw in raw_assets]

    async def get_multiple_tag_infos(
        self,
        names: Sequence[str],
        only: Sequence[str] = ("title", "type", "post_count"),
    ) -> dict[str, TagInfo]:
        if not names:
            return {}
        fields = set(only) | {"title", "type"}
        raw_tags = await self._get_json("/tags.json", {
            "search[name_comma]": ",".join(names),
            "limit": len(names),
            "only": _danbooru_only(sorted(fields)) + ",is_deprecated",
        })
        infos: dict[str, TagInfo] = {}
        for raw in raw_tags:
            tag_type = "deprecated" if raw.get("is_deprecated") else \
                _NUMBER_TO_TAG_TYPE.get(raw.get("category", 0), "tag")
            infos[raw["name"]] = TagInfo(
                id=raw.get("id"),
                title=raw["name"],
                type=tag_type,
                post_count=raw.get("post_count", 0),
            )
        return infos

    async def get_wiki_page(self, title: str) -> str | None:
        pages = await self._get_json("/wiki_pages.json", {
            "search[title]": title.strip().replace(" ", "_"),
            "only": "title,body",
        })
        if not pages:
            return None
        return pages[0]["body"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Gelbooru
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _as_list(value: Any) -> list[Any]:
    """Gelbooru returns a bare object instead of a one-element list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class GelbooruApi(BooruApi):
    host = HostName.GELBOORU

    def __init__(
        self,
        origin: str = "https://gelbooru.com",
        user_id: str = "",
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        super().__init__(origin, client=client, timeout=timeout)
        self.user_id = user_id
        self.api_key = api_key

    def _auth_params(self) -> dict[str, str]:
        if self.user_id and self.api_key:
            return {"user_id": self.user_id, "api_key": self.api_key}
        return {}

    def _index_url(self, **params: Any) -> str:
        return f"{self.origin}/index.php?" + urlencode(params)

    # ── URL builders ──────────────────────────────────────────────────────

    def get_post_url(self, post_id: int) -> str:
        return self._index_url(page="post", s="view", id=post_id)

    def get_media_asset_url(self, asset_id: int) -> str:
        raise BooruApiError("Media assets are not available on gelbooru")

    def get_pool_url(self, pool_id: int) -> str:
        return self._index_url(page="pool", s="show", id=pool_id)

    def get_wiki_url(self, page_id: str) -> str:
        return self._index_url(page="wiki", s="list", search=page_id)

    def get_query_url(self, tags: Sequence[str]) -> str:
        return self._index_url(page="post", s="list", tags=" ".join(tags))

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_posts(self, ids: Sequence[int], only: Sequence[str] = ("id", "thumbnail_url")) -> list[PostInfo]:
        if not ids:
            return []
        query = "{" + " ~ ".join(f"id:{i}" for i in ids) + "}"
        data = await self._get_json("/index.php", {
            "page": "dapi", "s": "post", "q": "index", "json": 1,
            "tags": query,
            "limit": len(ids),
        })
        return [
            PostInfo(
                id=int(raw["id"]),
                thumbnail_url=raw.get("preview_url") or "",
                md5=raw.get("md5"),
                source=raw.get("source"),
            )
            for raw in _as_list(data.get("post"))
        ]

    async def get_multiple_tag_infos(self, names: Sequence[str], only: Sequence[str] = ()) -> dict[str, TagInfo]:
        if not names:
            return {}
        data = await self._get_json("/index.php", {
            "page": "dapi", "s": "tag", "q": "index", "json": 1,
            "names": " ".join(names),
        })
        infos: dict[str, TagInfo] = {}
        for raw in _as_list(data.get("tag")):
            infos[raw["name"]] = TagInfo(
                id=raw.get("id"),
                title=raw["name"],
                type=_NUMBER_TO_TAG_TYPE.get(int(raw.get("type", 0)), "tag"),
                post_count=int(raw.get("count", 0)),
            )
        return infos


# -----------------------------------------------------------------------------

def get_api(
    host: HostName,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> BooruApi:
    """Build the client for *host* from application settings."""
    settings = settings or get_settings()
    if host == HostName.DANBOORU:
        return DanbooruApi(
            settings.danbooru_origin,
            username=settings.danbooru_username,
            api_key=settings.danbooru_api_key,
            client=client,
            timeout=settings.request_timeout,
        )
    if host == HostName.GELBOORU:
        return GelbooruApi(
            settings.gelbooru_origin,
            user_id=settings.gelbooru_user_id,
            api_key=settings.gelbooru_api_key,
            client=client,
            timeout=settings.request_timeout,
        )
    raise ValueError(f"Unknown host {host}")


# -----------------------------------------------------------------------------
