"""Pexels video source for stock footage.

API Documentation: https://www.pexels.com/api/documentation/

To get an API key:
1. Create a free account at https://www.pexels.com
2. Go to https://www.pexels.com/api/new/ to generate an API key
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from models.video import MediaDescriptor, VideoFile, VideoFormat
from services.used_video_registry import UsedResourceRegistry
from services.video_sources.base import VideoSource
from utils.config import PEXELS_VIDEO_SEARCH_URL
from utils.retry import RateLimitExceeded

logger = logging.getLogger(__name__)

# (min_height, min_width), best first. The last tier is the minimum accepted.
RESOLUTION_TIERS = [(1920, 1080), (1080, 608), (720, 406)]
MP4_TYPE = "video/mp4"


def select_best_video_file(video_files: list[VideoFile]) -> Optional[VideoFile]:
    """Pick the first mp4 rendition that satisfies the highest resolution tier.

    Args:
        video_files: Renditions in the order the API returned them

    Returns:
        Selected rendition, or None if nothing reaches the minimum tier
    """
    for min_height, min_width in RESOLUTION_TIERS:
        for video_file in video_files:
            if (
                video_file.file_type == MP4_TYPE
                and video_file.height >= min_height
                and video_file.width >= min_width
            ):
                return video_file
    return None


class PexelsVideoSource(VideoSource):
    """Pexels video source.

    Pexels provides royalty-free videos under the Pexels license.
    """

    def __init__(
        self,
        api_key: str,
        per_page: int = 15,
        timeout: float = 30.0,
        min_duration: int = 3,
        max_duration: int = 15,
        base_url: str = PEXELS_VIDEO_SEARCH_URL,
    ):
        """Initialize Pexels video source.

        Args:
            api_key: Pexels API key
            per_page: Results per request (max 80 per page)
            timeout: Request budget in seconds
            min_duration: Shortest usable video in seconds
            max_duration: Longest usable video in seconds
            base_url: Search endpoint
        """
        self.api_key = api_key
        self.per_page = min(per_page, 80)  # Pexels API limit
        self.timeout = timeout
        self.min_duration = min_duration
        self.max_duration = max_duration
        self.base_url = base_url

        if not self.api_key:
            logger.warning(
                "[Pexels] No API key configured. Set PEXELS_API_KEY to enable Pexels search."
            )

    def get_source_name(self) -> str:
        return "pexels"

    async def search(
        self, query: str, page: int, video_format: VideoFormat
    ) -> list[MediaDescriptor]:
        """Search Pexels for videos matching the query.

        Timeouts and non-429 errors are logged and yield no results.

        Raises:
            RateLimitExceeded: If Pexels answers 429
        """
        if not query.strip():
            return []

        headers = {"Authorization": self.api_key}
        params = {
            "query": query,
            "per_page": self.per_page,
            "page": page,
            "orientation": video_format.orientation,
            "size": "large",
        }

        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.get(
                    self.base_url, headers=headers, params=params
                ) as response:
                    if response.status == 429:
                        logger.warning("[Pexels] Rate limit exceeded")
                        raise RateLimitExceeded("Pexels rate limit exceeded")

                    if response.status == 401:
                        logger.error("[Pexels] Invalid API key")
                        return []

                    if response.status != 200:
                        logger.warning(f"[Pexels] API returned status {response.status}")
                        return []

                    data = await response.json()

        except asyncio.TimeoutError:
            logger.error(f"[Pexels] Search timed out for '{query}'")
            return []
        except aiohttp.ClientError as e:
            logger.error(f"[Pexels] Network error: {e}")
            return []

        results = []
        for video in data.get("videos") or []:
            result = self._parse_video(video)
            if result:
                results.append(result)

        logger.debug(f"[Pexels] '{query}' page {page}: {len(results)} videos")
        return results

    def is_usable(self, video: MediaDescriptor, registry: UsedResourceRegistry) -> bool:
        """Check that a video is unused, long enough, short enough and has a good rendition."""
        if registry.is_used(video.video_id):
            return False
        if select_best_video_file(video.video_files) is None:
            return False
        return self.min_duration <= video.duration <= self.max_duration

    def _parse_video(self, video: dict) -> Optional[MediaDescriptor]:
        """Parse a Pexels API video into a MediaDescriptor.

        Args:
            video: Video dict from Pexels API

        Returns:
            MediaDescriptor or None if the entry has no id
        """
        video_id = video.get("id")
        if video_id is None or video_id == "":
            return None

        files = [
            VideoFile(
                link=f.get("link", ""),
                width=f.get("width") or 0,
                height=f.get("height") or 0,
                file_type=f.get("file_type") or "",
                quality=f.get("quality"),
            )
            for f in video.get("video_files") or []
        ]
        user = video.get("user") or {}

        return MediaDescriptor(
            video_id=str(video_id),
            url=video.get("url", f"https://www.pexels.com/video/{video_id}/"),
            duration=video.get("duration") or 0,
            width=video.get("width") or 0,
            height=video.get("height") or 0,
            image=video.get("image"),
            user_name=user.get("name"),
            video_files=files,
        )

