"""Video search service: find one unused stock video for a keyword set.

Responsibilities:
- Run the fallback search strategies against the video source
- Record the chosen video in the used-video registry
- Memoize successful searches per (keywords, page, format)
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Optional

from models.video import MediaDescriptor, VideoFormat, VideoPreview
from services.video_sources.pexels import select_best_video_file
from utils.cache import ResponseCache, composite_key
from utils.retry import RateLimitedExecutor

if TYPE_CHECKING:
    from services.used_video_registry import UsedResourceRegistry
    from services.video_sources.pexels import PexelsVideoSource

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_KEYWORDS = ["technology", "business"]
PRIMARY_KEYWORD_COUNT = 2
COMBINED_KEYWORD_COUNT = 3
MIN_COMBINED_KEYWORD_LENGTH = 4
FALLBACK_MAX_PAGE = 5


class NoUsableResourceFound(Exception):
    """Every search strategy came back without a usable video."""

    def __init__(self, keywords: list[str]):
        self.keywords = list(keywords)
        super().__init__(f"No usable video found for keywords: {', '.join(keywords)}")


class VideoSearchService:
    """Service for selecting footage for a content unit.

    Strategies, in order, stopping at the first usable hit:
    1. Each of the first two keywords on its own
    2. Up to three keywords longer than 3 characters joined with " OR "
    3. General fallback keywords on a random page
    """

    def __init__(
        self,
        source: "PexelsVideoSource",
        registry: "UsedResourceRegistry",
        executor: Optional[RateLimitedExecutor] = None,
        cache: Optional[ResponseCache] = None,
        fallback_keywords: Optional[list[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the video search service.

        Args:
            source: Video source to query
            registry: Used-video registry consulted and updated on every hit
            executor: Retry policy wrapped around the whole strategy chain
            cache: Cache of successful searches
            fallback_keywords: Keywords for the last-resort strategy
            rng: Random source for the fallback page (seeded in tests)
        """
        self.source = source
        self.registry = registry
        self.executor = executor or RateLimitedExecutor()
        self.cache = cache or ResponseCache("video_search")
        self.fallback_keywords = list(fallback_keywords or DEFAULT_FALLBACK_KEYWORDS)
        self.rng = rng or random.Random()

        logger.info(
            f"[VideoSearchService] Initialized with source '{source.get_source_name()}', "
            f"fallback keywords: {', '.join(self.fallback_keywords)}"
        )

    async def search_video_preview(
        self, keywords: list[str], page: int, video_format: VideoFormat
    ) -> VideoPreview:
        """Find and reserve a video for a keyword set.

        Args:
            keywords: Search keywords, most relevant first
            page: Result page for the keyword strategies
            video_format: Output format (orientation hint and cache key part)

        Returns:
            Preview of the selected video

        Raises:
            NoUsableResourceFound: If no strategy finds a usable video
            RateLimitExceeded: If the source keeps throttling after all retries
        """
        key = composite_key(*keywords, page, video_format.size_label)

        async def search() -> VideoPreview:
            return await self.executor.execute_with_retry(
                lambda: self._run_strategies(keywords, page, video_format)
            )

        return await self.cache.get_or_compute(key, search)

    async def _run_strategies(
        self, keywords: list[str], page: int, video_format: VideoFormat
    ) -> VideoPreview:
        for keyword in keywords[:PRIMARY_KEYWORD_COUNT]:
            logger.info(f"Searching with keyword '{keyword}'...")
            video = await self.source.find_usable(keyword, page, video_format, self.registry)
            if video:
                logger.info(f"Found video {video.video_id} with keyword '{keyword}'")
                return await self._reserve(video, keywords, page)

        long_keywords = [k for k in keywords if len(k) >= MIN_COMBINED_KEYWORD_LENGTH]
        if long_keywords:
            query = " OR ".join(long_keywords[:COMBINED_KEYWORD_COUNT])
            logger.info(f"Single keywords failed, trying combined query '{query}'...")
            video = await self.source.find_usable(query, page, video_format, self.registry)
            if video:
                logger.info(f"Found video {video.video_id} with combined query")
                return await self._reserve(video, keywords, page)

        logger.info("Combined query failed, trying general keywords...")
        for keyword in self.fallback_keywords:
            fallback_page = self.rng.randint(1, FALLBACK_MAX_PAGE)
            video = await self.source.find_usable(
                keyword, fallback_page, video_format, self.registry
            )
            if video:
                logger.info(f"Found video {video.video_id} with general keyword '{keyword}'")
                return await self._reserve(video, keywords, page)

        raise NoUsableResourceFound(keywords)

    async def _reserve(
        self, video: MediaDescriptor, keywords: list[str], page: int
    ) -> VideoPreview:
        """Mark the video as used and build its preview."""
        await asyncio.to_thread(self.registry.mark_used, video.video_id, ", ".join(keywords))
        best_file = select_best_video_file(video.video_files)
        return VideoPreview(
            video_id=video.video_id,
            video_url=best_file.link,
            thumbnail_url=video.image,
            current_page=page,
            attribution=video.attribution,
        )
