"""정규화된 YouTube 응답 스키마 - export only."""

from .youtube_schema import (
    ChannelDetails,
    ChannelSearchHit,
    PlaylistItem,
    PlaylistPage,
    VideoDetails,
    VideoStatus,
)

__all__ = [
    "ChannelDetails",
    "ChannelSearchHit",
    "PlaylistItem",
    "PlaylistPage",
    "VideoDetails",
    "VideoStatus",
]
