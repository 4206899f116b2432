from booruwiki.schemas.schemas import (
    HostName, TagType,
    PostInfo, MediaAssetVariant, MediaAssetInfo, TagInfo,
    RenderOptions, RenderRequest, RenderResponse, WikiPageResponse,
)

__all__ = [
    "HostName", "TagType",
    "PostInfo", "MediaAssetVariant", "MediaAssetInfo", "TagInfo",
    "RenderOptions", "RenderRequest", "RenderResponse", "WikiPageResponse",
]
