"""파이프라인 서비스 - export only."""

from .impl import (
    CatalogService,
    ChannelResolver,
    PlaylistCrawler,
    UploadsPlaylistService,
    VideoDetailsService,
)

__all__ = [
    "CatalogService",
    "ChannelResolver",
    "PlaylistCrawler",
    "UploadsPlaylistService",
    "VideoDetailsService",
]
