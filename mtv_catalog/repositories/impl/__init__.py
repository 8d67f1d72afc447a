"""Repositories implementation package."""

from .analytics_repository import AnalyticsRepository
from .api_call_repository import ApiCallRepository
from .channel_repository import ChannelRepository
from .override_repository import OverrideRepository
from .progress_repository import ProgressRepository
from .seed_repository import SeedRepository
from .video_repository import VideoRepository

__all__ = [
    "AnalyticsRepository",
    "ApiCallRepository",
    "ChannelRepository",
    "OverrideRepository",
    "ProgressRepository",
    "SeedRepository",
    "VideoRepository",
]
