#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
DText renderer
==============
Renders booru wiki markup (DText) to an HTML fragment.

Pipeline
--------
  1. escape the raw markup once
  2. inline passes, each applied to the output of the previous one:
       "text":/path  "text":url  "text":[url]     : external / site links
       https://...                                 : bare URLs
       "text":#ref                                 : in-page links
       [i] [b] [post]                              : style tags (two passes)
       post #123  pool #45                         : id mentions
       {{tag1 tag2}}                               : search links
  3. [[page|display]]                              : wiki links (API, best effort)
  4. !post #1 / !asset #2 line runs                : thumbnail galleries (API)
  5. blank-line separated segments                 : headings, [expand],
                                                     nested lists, paragraphs

Headings: hN. renders as <h{N-1}>, clamped to <h1>..<h6>, so h1. and h2.
both give <h1>.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from booruwiki.schemas import RenderOptions
from booruwiki.services.booru_api import BooruApi
from booruwiki.services.references import (
    normalize_page_id,
    resolve_reference_lists,
    resolve_wiki_links,
)
from booruwiki.services.text import Replacement, escape_html, replace_ranges, unescape_html

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def _rewrite(pattern: re.Pattern, text: str, build: Callable[[re.Match], Optional[str]]) -> str:
    """Replace every match of *pattern* with ``build(match)``; ``None`` keeps the match literal."""
    replacements: list[Replacement] = []
    for m in pattern.finditer(text):
        new_text = build(m)
        if new_text is not None:
            replacements.append(Replacement(m.start(), m.end(), new_text))
    return replace_ranges(text, replacements)


# -----------------------------------------------------------------------------
# Inline passes
# -----------------------------------------------------------------------------

# Bracketed targets are limited to http(s) URLs and site paths
_QUOTED_LINK_RE = re.compile(
    r"&quot;((?:(?!&quot;).)+)&quot;:(?:(/[^,\s<]+)|(https?://[^\s<]+)|\[(https?://[^\]]+|/[^\]]*)\])"
)
# Not inside an emitted href, anchor text or a path
_BARE_URL_RE = re.compile(r'(?<!href=")(?<!>)(?<!/)(https?://[^\s<]+)')
_LOCAL_LINK_RE = re.compile(r"&quot;((?:(?!&quot;).)+)&quot;:#([^\s<]+)")
_STYLE_TAG_RE = re.compile(r"\[([^\]]+)\](.*?)\[/\1\]")
_POST_MENTION_RE = re.compile(r"(?<![!\w])post #(\d+)", re.IGNORECASE)
_POOL_MENTION_RE = re.compile(r"(?<![!\w])pool #(\d+)", re.IGNORECASE)
_QUERY_RE = re.compile(r"\{\{([^}]+)\}\}")


def _post_anchor(post_id: int, label: str, api: BooruApi) -> str:
    href = escape_html(api.get_post_url(post_id))
    return f'<a class="post-link" data-post-id="{post_id}" href="{href}" target="_blank">{label}</a>'


def convert_quoted_links(text: str, api: BooruApi) -> str:
    def _build(m: re.Match) -> str:
        label = m.group(1)
        target = m.group(2) or m.group(3) or m.group(4)
        wiki_attrs = ""
        if target.startswith("/"):
            raw_path = unescape_html(target)
            page = api.wiki_page_from_url(raw_path)
            if page:
                wiki_attrs = f' class="wiki-link" data-page="{escape_html(normalize_page_id(page))}"'
            href = escape_html(api.get_url(raw_path))
        else:
            href = target
        return f'<a href="{href}"{wiki_attrs} target="_blank">{label}</a>'
    return _rewrite(_QUOTED_LINK_RE, text, _build)


def convert_bare_urls(text: str) -> str:
    return _rewrite(
        _BARE_URL_RE, text,
        lambda m: f'<a href="{m.group(1)}" target="_blank">{m.group(1)}</a>',
    )


def convert_local_links(text: str) -> str:
    def _build(m: re.Match) -> str:
        ref_id = m.group(2)
        if ref_id.startswith("dtext-"):
            ref_id = ref_id[len("dtext-"):]
        return f'<a class="local-link" data-linkto="{ref_id}">{m.group(1)}</a>'
    return _rewrite(_LOCAL_LINK_RE, text, _build)


def convert_style_tags(text: str, api: BooruApi) -> str:
    """One pass over [i], [b] and [post] pairs; unknown tags stay literal."""
    def _build(m: re.Match) -> str | None:
        tag, content = m.group(1), m.group(2)
        if tag == "i":
            return f"<i>{content}</i>"
        if tag == "b":
            return f"<b>{content}</b>"
        if tag == "post" and content.strip().isdecimal():
            post_id = int(content)
            return _post_anchor(post_id, f"post {post_id}", api)
        return None
    return _rewrite(_STYLE_TAG_RE, text, _build)


def convert_mentions(text: str, api: BooruApi) -> str:
    def _post(m: re.Match) -> str:
        post_id = int(m.group(1))
        return _post_anchor(post_id, f"post #{post_id}", api)

    def _pool(m: re.Match) -> str:
        pool_id = int(m.group(1))
        href = escape_html(api.get_pool_url(pool_id))
        return f'<a class="pool-link" data-pool-id="{pool_id}" href="{href}" target="_blank">pool #{pool_id}</a>'

    text = _rewrite(_POST_MENTION_RE, text, _post)
    if api.supports_pools:
        text = _rewrite(_POOL_MENTION_RE, text, _pool)
    return text


def convert_queries(text: str, api: BooruApi) -> str:
    def _build(m: re.Match) -> str | None:
        query = m.group(1)
        tags = unescape_html(query).split()
        if not tags:
            return None
        href = escape_html(api.get_query_url(tags))
        data_tags = escape_html(",".join(tags))
        return f'<a class="posts-search" data-tags="{data_tags}" href="{href}" target="_blank">{query}</a>'
    return _rewrite(_QUERY_RE, text, _build)


def convert_inline(text: str, api: BooruApi) -> str:
    """Run every synchronous inline pass over already-escaped *text*."""
    text = convert_quoted_links(text, api)
    text = convert_bare_urls(text)
    text = convert_local_links(text)
    # Twice, for one level of nesting: [b][i]...[/i][/b]
    text = convert_style_tags(convert_style_tags(text, api), api)
    text = convert_mentions(text, api)
    return convert_queries(text, api)


# -----------------------------------------------------------------------------
# Block structure
# -----------------------------------------------------------------------------

_HEADING_RE = re.compile(r"^h(\d)(?:#([^.]*))?\.[ \t]?")
_EXPAND_RE = re.compile(r"\[expand=([^\]]*)\](.*?)\[/expand\]", re.IGNORECASE | re.DOTALL)
_LIST_ITEM_RE = re.compile(r"^([*]+|-)\s")
_GALLERY_LINE_RE = re.compile(r'^<div class="media-gallery">')


def _structure_lines(lines: list[str], parts: list[str]) -> None:
    current_level = 0
    paragraph: list[str] = []

    def _flush_paragraph() -> None:
        if paragraph:
            parts.append("<p>" + "<br>".join(paragraph) + "</p>")
            paragraph.clear()

    for line in lines:
        m = _LIST_ITEM_RE.match(line)
        level = len(m.group(1)) if m else 0
        if level != current_level:
            _flush_paragraph()
            while current_level < level:
                parts.append("<ul>")
                current_level += 1
            while current_level > level:
                parts.append("</ul>")
                current_level -= 1
        if m:
            parts.append(f"<li>{line[m.end():]}</li>")
        elif _GALLERY_LINE_RE.match(line):
            _flush_paragraph()
            parts.append(line)
        else:
            paragraph.append(line)

    while current_level > 0:
        parts.append("</ul>")
        current_level -= 1
    _flush_paragraph()


def _structure_segment(segment: str, separator: str, parts: list[str]) -> None:
    segment = segment.strip()
    if not segment:
        return

    heading = _HEADING_RE.match(segment)
    if heading:
        level = min(max(int(heading.group(1)) - 1, 1), 6)
        ref_id = heading.group(2)
        ref_attr = f' data-ref="{ref_id}"' if ref_id else ""
        sep_pos = segment.find(separator, heading.end())
        if sep_pos < 0:
            sep_pos = len(segment)
        parts.append(f"<h{level}{ref_attr}>{segment[heading.end():sep_pos]}</h{level}>")
        _structure_segment(segment[sep_pos + len(separator):], separator, parts)
        return

    expansion = _EXPAND_RE.search(segment)
    if expansion:
        _structure_segment(segment[:expansion.start()], separator, parts)
        parts.append(f"<h5>{expansion.group(1)}</h5>")
        _structure_segment(expansion.group(2), separator, parts)
        _structure_segment(segment[expansion.end():], separator, parts)
        return

    _structure_lines(segment.split(separator), parts)


def structure_blocks(text: str, separator: str) -> str:
    """Convert blank-line separated segments of inline-resolved text to block HTML."""
    parts: list[str] = []
    for segment in text.split(separator + separator):
        _structure_segment(segment, separator, parts)
    return "".join(parts)


# -----------------------------------------------------------------------------
# Public render function
# -----------------------------------------------------------------------------

async def render_markup(markup: str, options: RenderOptions | None, api: BooruApi) -> str:
    """
    Render DText *markup* to an HTML fragment.

    Parameters
    ----------
    markup  : raw wiki page body
    options : line separator and wiki tag lookup limit; ``None`` for defaults
    api     : booru client used for URL building and batched lookups

    Raises whatever the post / media asset lookups raise, or
    ``UnresolvedReferenceError`` for a gallery id the API did not return.
    """
    options = options or RenderOptions()
    separator = options.line_separator

    page = escape_html(markup)
    page = convert_inline(page, api)
    page = await resolve_wiki_links(page, api, options.wiki_tag_lookup_limit)
    if api.supports_galleries:
        page = await resolve_reference_lists(page, separator, api)

    html = structure_blocks(page, separator)
    log.debug("Rendered %d chars of markup to %d chars of HTML", len(markup), len(html))
    return html


# -----------------------------------------------------------------------------
