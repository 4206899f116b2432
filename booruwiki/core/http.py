#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Shared outbound HTTP client and the booru API dependency used by the routers.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Callable

import httpx
from fastapi import Request

from booruwiki.core.config import Settings, get_settings
from booruwiki.schemas import HostName
from booruwiki.services.booru_api import BooruApi, get_api

ApiFactory = Callable[[HostName], BooruApi]


# -----------------------------------------------------------------------------

def create_http_client(settings: Settings | None = None) -> httpx.AsyncClient:
    settings = settings or get_settings()
    return httpx.AsyncClient(
        timeout=settings.request_timeout,
        headers={"User-Agent": f"{settings.app_name}/{settings.app_version}"},
        follow_redirects=True,
    )


# -----------------------------------------------------------------------------

async def get_api_factory(request: Request) -> ApiFactory:
    """FastAPI dependency that builds booru clients on the app's shared httpx client."""
    settings = get_settings()
    client = getattr(request.app.state, "http_client", None)

    def _factory(host: HostName) -> BooruApi:
        return get_api(host, settings=settings, client=client)

    return _factory


# -----------------------------------------------------------------------------
