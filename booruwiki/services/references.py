#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Reference resolvers
===================
The two rendering stages that consult the booru API:

  [[page]] / [[page|display]]      : wiki links, optionally annotated with the
                                     tag type of the page (best effort)
  !post #123: description          : contiguous runs of these lines become one
  * !asset #456                      thumbnail gallery (posts and assets are
                                     fetched in two batched requests)
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from booruwiki.schemas import TagInfo
from booruwiki.services.booru_api import BooruApi
from booruwiki.services.text import Replacement, escape_html, replace_ranges, unescape_html

log = logging.getLogger(__name__)

ResourceType = Literal["post", "asset"]


# -----------------------------------------------------------------------------

class UnresolvedReferenceError(Exception):
    """A post or media asset named in a reference list was not returned by the API."""

    def __init__(self, resource_type: ResourceType, resource_id: int):
        super().__init__(f"Could not resolve {resource_type} #{resource_id}")
        self.resource_type = resource_type
        self.resource_id = resource_id


# -----------------------------------------------------------------------------
# Wiki links  [[Page Name|Display]] → <a class="wiki-link" data-page="page_name">
# -----------------------------------------------------------------------------

_WIKI_REFERENCE_RE = re.compile(r"\[\[([^\]]*)\]\]")

# "_(qualifier)" suffixes dropped by the pipe trick: [[Foo (bar)|]] → "Foo"
_QUALIFIER_RE = re.compile(r"_?\(.*?\)")


@dataclass(frozen=True)
class WikiLinkMatch:
    raw_target: str
    display_name: str
    normalized_page_id: str
    start: int
    end: int


def normalize_page_id(target: str) -> str:
    return unescape_html(target.strip().lower().replace(" ", "_"))


def _parse_wiki_link(m: re.Match) -> WikiLinkMatch:
    parts = m.group(1).split("|")
    target = parts[0]
    if len(parts) > 1 and parts[1]:
        display = parts[1]
    elif len(parts) > 1:
        display = _QUALIFIER_RE.sub("", target).strip() or target
    else:
        display = target
    return WikiLinkMatch(
        raw_target=target,
        display_name=display,
        normalized_page_id=normalize_page_id(target),
        start=m.start(),
        end=m.end(),
    )


async def _lookup_tag_infos(
    links: Sequence[WikiLinkMatch],
    api: BooruApi,
    lookup_limit: int,
) -> dict[str, TagInfo]:
    if len(links) > lookup_limit:
        log.debug("Skipping tag lookup for %d wiki links (limit %d)", len(links), lookup_limit)
        return {}
    page_ids = list(dict.fromkeys(link.normalized_page_id for link in links))
    try:
        return await api.get_multiple_tag_infos(page_ids, only=("title", "type"))
    except Exception as exc:
        log.warning("Tag lookup for %d wiki links failed: %s", len(page_ids), exc)
        return {}


def _wiki_anchor(link: WikiLinkMatch, tag_info: TagInfo | None, api: BooruApi) -> str:
    page_id = link.normalized_page_id
    type_attr = f' data-type="{tag_info.type}"' if tag_info else ""
    href = escape_html(api.get_wiki_url(page_id))
    return (
        f'<a class="wiki-link" data-page="{escape_html(page_id)}"{type_attr} '
        f'href="{href}">{link.display_name}</a>'
    )


async def resolve_wiki_links(text: str, api: BooruApi, lookup_limit: int = 30) -> str:
    """Replace every ``[[target|display]]`` in *text* with a wiki-link anchor."""
    links = [_parse_wiki_link(m) for m in _WIKI_REFERENCE_RE.finditer(text)]
    if not links:
        return text
    log.debug("Resolving %d wiki links", len(links))
    tag_infos = await _lookup_tag_infos(links, api, lookup_limit)
    return replace_ranges(text, [
        Replacement(link.start, link.end,
                    _wiki_anchor(link, tag_infos.get(link.normalized_page_id), api))
        for link in links
    ])


# -----------------------------------------------------------------------------
# Reference lists  !post #id: desc  → <div class="media-gallery">
# -----------------------------------------------------------------------------

_REFERENCE_LINE_RE = re.compile(r"(?:[-*] )?!(post|asset) #(\d+)(?::\s?(.+))?")


@dataclass(frozen=True)
class ReferenceMatch:
    resource_type: ResourceType
    resource_id: int
    description: Optional[str]
    line_start: int
    line_end: int


@dataclass(frozen=True)
class ReferenceRun:
    """A maximal block of consecutive reference lines; ``[start, end)`` excludes the trailing separator."""
    matches: tuple[ReferenceMatch, ...]
    start: int
    end: int


@dataclass(frozen=True)
class ResourceInfo:
    url: str
    thumbnail_url: str


def find_reference_runs(text: str, separator: str) -> list[ReferenceRun]:
    runs: list[ReferenceRun] = []
    current: list[ReferenceMatch] = []
    offset = 0

    def _close_run() -> None:
        runs.append(ReferenceRun(tuple(current), current[0].line_start, current[-1].line_end))
        current.clear()

    for line in text.split(separator):
        m = _REFERENCE_LINE_RE.fullmatch(line)
        if m:
            current.append(ReferenceMatch(
                resource_type=m.group(1),
                resource_id=int(m.group(2)),
                description=m.group(3),
                line_start=offset,
                line_end=offset + len(line),
            ))
        elif current:
            _close_run()
        offset += len(line) + len(separator)
    if current:
        _close_run()
    return runs


def _distinct_ids(runs: Sequence[ReferenceRun], resource_type: ResourceType) -> list[int]:
    return list(dict.fromkeys(
        match.resource_id
        for run in runs
        for match in run.matches
        if match.resource_type == resource_type
    ))


async def _fetch_post_infos(api: BooruApi, ids: list[int]) -> dict[int, ResourceInfo]:
    if not ids:
        return {}
    log.info("Looking up %d posts", len(ids))
    posts = await api.get_posts(ids, only=("id", "thumbnail_url"))
    return {post.id: ResourceInfo(api.get_post_url(post.id), post.thumbnail_url) for post in posts}


async def _fetch_asset_infos(api: BooruApi, ids: list[int]) -> dict[int, ResourceInfo]:
    if not ids:
        return {}
    log.info("Looking up %d media assets", len(ids))
    assets = await api.get_media_assets(ids, only=("id", "variants"))
    return {
        asset.id: ResourceInfo(api.get_media_asset_url(asset.id), asset.thumbnail_url)
        for asset in assets
    }


def _render_gallery(run: ReferenceRun, resources: dict[str, dict[int, ResourceInfo]]) -> str:
    entries: list[str] = []
    for match in run.matches:
        info = resources[match.resource_type].get(match.resource_id)
        if info is None:
            raise UnresolvedReferenceError(match.resource_type, match.resource_id)
        entry = (
            f'<div><a class="booru-post" href="{escape_html(info.url)}" target="_blank">'
            f'<img class="small preview" src="{escape_html(info.thumbnail_url)}"></a>'
        )
        description = (match.description or "").strip()
        if description:
            entry += f'<div class="description">{description}</div>'
        entries.append(entry + "</div>")
    return '<div class="media-gallery">' + "".join(entries) + "</div>"


async def resolve_reference_lists(text: str, separator: str, api: BooruApi) -> str:
    """
    Replace each run of ``!post #id`` / ``!asset #id`` lines with a gallery.

    Raises ``UnresolvedReferenceError`` if an id is missing from the lookup
    response. The first lookup failure propagates unchanged and cancels the
    other lookup.
    """
    runs = find_reference_runs(text, separator)
    if not runs:
        return text
    log.debug("Resolving %d reference runs", len(runs))

    lookups = [
        asyncio.create_task(_fetch_post_infos(api, _distinct_ids(runs, "post"))),
        asyncio.create_task(_fetch_asset_infos(api, _distinct_ids(runs, "asset"))),
    ]
    try:
        post_infos, asset_infos = await asyncio.gather(*lookups)
    except BaseException:
        # First failure wins; the other lookup is cancelled and its outcome collected
        for task in lookups:
            task.cancel()
        await asyncio.gather(*lookups, return_exceptions=True)
        raise
    resources = {"post": post_infos, "asset": asset_infos}

    return replace_ranges(text, [
        Replacement(run.start, run.end, _render_gallery(run, resources))
        for run in runs
    ])


# -----------------------------------------------------------------------------
