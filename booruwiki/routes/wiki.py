#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Wiki router
===========
GET /api/v1/wiki/{host}/{title}   : fetch a wiki page from a booru and render it
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from booruwiki.core.config import get_settings
from booruwiki.core.http import ApiFactory, get_api_factory
from booruwiki.schemas import HostName, RenderOptions, WikiPageResponse
from booruwiki.services.booru_api import BooruApiError
from booruwiki.services.references import UnresolvedReferenceError
from booruwiki.services.renderer import render_markup


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/wiki", tags=["wiki"])


# -----------------------------------------------------------------------------

@router.get("/{host}/{title:path}", response_model=WikiPageResponse)
async def get_wiki_page(
    host:        HostName,
    title:       str,
    api_factory: ApiFactory = Depends(get_api_factory),
):
    settings = get_settings()
    async with api_factory(host) as api:
        try:
            body = await api.get_wiki_page(title)
            if body is None:
                raise HTTPException(status_code=404, detail=f"Wiki page '{title}' not found")
            options = RenderOptions(
                line_separator=api.wiki_line_separator,
                wiki_tag_lookup_limit=settings.wiki_tag_lookup_limit,
            )
            html = await render_markup(body, options, api)
        except (BooruApiError, UnresolvedReferenceError) as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return WikiPageResponse(title=title, host=host, html=html)


# -----------------------------------------------------------------------------
