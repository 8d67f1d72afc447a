"""Services implementation package."""

from .catalog_service import CatalogService
from .crawl_service import PlaylistCrawler
from .resolution_service import ChannelResolver
from .uploads_service import UploadsPlaylistService
from .video_details_service import VideoDetailsService

__all__ = [
    "CatalogService",
    "ChannelResolver",
    "PlaylistCrawler",
    "UploadsPlaylistService",
    "VideoDetailsService",
]
