#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for booru lookup results, render options and the HTTP API.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Hosts
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class HostName(str, Enum):
    GELBOORU = "gelbooru"
    DANBOORU = "danbooru"


TagType = Literal["artist", "character", "copyright", "metadata", "tag", "deprecated"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Lookup results
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PostInfo(BaseModel):
    id: int
    thumbnail_url: str = ""
    md5: Optional[str] = None
    source: Optional[str] = None


# -----------------------------------------------------------------------------

class MediaAssetVariant(BaseModel):
    type: str = ""
    url: str
    width: Optional[int] = None
    height: Optional[int] = None


# -----------------------------------------------------------------------------

class MediaAssetInfo(BaseModel):
    id: int
    variants: list[MediaAssetVariant] = Field(default_factory=list)

    @property
    def thumbnail_url(self) -> str:
        """Second-to-last variant when there are several, else the only one."""
        if not self.variants:
            return ""
        index = len(self.variants) - 2 if len(self.variants) > 1 else 0
        return self.variants[index].url


# -----------------------------------------------------------------------------

class TagInfo(BaseModel):
    title: str
    type: TagType = "tag"
    post_count: int = 0
    id: Optional[int] = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Rendering
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RenderOptions(BaseModel):
    line_separator: str = Field(default="\n", min_length=1)
    wiki_tag_lookup_limit: int = Field(default=30, ge=0)


# -----------------------------------------------------------------------------

class RenderRequest(BaseModel):
    markup: str = Field(..., max_length=1_000_000)
    host: HostName = HostName.DANBOORU
    line_separator: Optional[str] = Field(None, min_length=1)


# -----------------------------------------------------------------------------

class RenderResponse(BaseModel):
    html: str
    host: HostName


# -----------------------------------------------------------------------------

class WikiPageResponse(BaseModel):
    title: str
    host: HostName
    html: str
