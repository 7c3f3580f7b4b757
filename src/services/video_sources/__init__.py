"""Video sources package for stock footage acquisition."""

from services.video_sources.base import VideoSource
from services.video_sources.pexels import PexelsVideoSource, select_best_video_file

__all__ = ["VideoSource", "PexelsVideoSource", "select_best_video_file"]
