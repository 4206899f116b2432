#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render endpoint: live preview for wiki markup.

POST /api/v1/render   {"markup": "...", "host": "danbooru", "line_separator": "\\n"}
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from booruwiki.core.config import get_settings
from booruwiki.core.http import ApiFactory, get_api_factory
from booruwiki.schemas import RenderOptions, RenderRequest, RenderResponse
from booruwiki.services.booru_api import BooruApiError
from booruwiki.services.references import UnresolvedReferenceError
from booruwiki.services.renderer import render_markup


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/render", tags=["render"])


# -----------------------------------------------------------------------------

@router.post("", response_model=RenderResponse)
async def render_preview(
    body:        RenderRequest,
    api_factory: ApiFactory = Depends(get_api_factory),
):
    """Return rendered HTML for a snippet of wiki markup."""
    settings = get_settings()
    options = RenderOptions(
        line_separator=body.line_separator or settings.default_line_separator,
        wiki_tag_lookup_limit=settings.wiki_tag_lookup_limit,
    )
    async with api_factory(body.host) as api:
        try:
            html = await render_markup(body.markup, options, api)
        except (BooruApiError, UnresolvedReferenceError) as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return RenderResponse(html=html, host=body.host)


# -----------------------------------------------------------------------------
