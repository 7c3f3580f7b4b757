"""Tests for footage selection strategies."""

import random

import pytest

from models.video import MediaDescriptor, VideoFile
from services.used_video_registry import UsedResourceRegistry
from services.video_search_service import NoUsableResourceFound, VideoSearchService
from utils.retry import RateLimitedExecutor, RateLimitExceeded


def _descriptor(video_id: str) -> MediaDescriptor:
    return MediaDescriptor(
        video_id=video_id,
        url=f"https://www.pexels.com/video/{video_id}/",
        duration=8,
        image=f"https://images.pexels.com/{video_id}.jpeg",
        user_name="Jane Doe",
        video_files=[
            VideoFile(
                link=f"https://videos.pexels.com/{video_id}/hd.mp4",
                width=1080,
                height=1920,
                file_type="video/mp4",
            )
        ],
    )


class FakeSource:
    """Video source answering from a query -> video id table."""

    def __init__(self, hits=None, rate_limited: int = 0):
        self.hits = hits or {}
        self.rate_limited = rate_limited
        self.queries = []

    def get_source_name(self) -> str:
        return "fake"

    async def find_usable(self, query, page, video_format, registry):
        self.queries.append((query, page))
        if self.rate_limited:
            self.rate_limited -= 1
            raise RateLimitExceeded("429")
        video_id = self.hits.get(query)
        if video_id is None or registry.is_used(video_id):
            return None
        return _descriptor(video_id)


@pytest.fixture
def registry(tmp_path):
    return UsedResourceRegistry(tmp_path / "used_videos.json")


def _service(source, registry, no_sleep, fallback=None):
    return VideoSearchService(
        source=source,
        registry=registry,
        executor=RateLimitedExecutor(max_retries=3, sleep=no_sleep),
        fallback_keywords=fallback or ["technology", "business"],
        rng=random.Random(7),
    )


@pytest.mark.unit
class TestVideoSearchService:
    """Tests for VideoSearchService."""

    @pytest.mark.asyncio
    async def test_first_keyword_hit(self, registry, no_sleep, shorts_format):
        source = FakeSource({"hacker": "101"})
        service = _service(source, registry, no_sleep)

        preview = await service.search_video_preview(["hacker", "laptop"], 1, shorts_format)

        assert preview.video_id == "101"
        assert preview.video_url == "https://videos.pexels.com/101/hd.mp4"
        assert preview.thumbnail_url == "https://images.pexels.com/101.jpeg"
        assert preview.current_page == 1
        assert preview.attribution == "Video by Jane Doe from Pexels"
        assert source.queries == [("hacker", 1)]
        assert registry.usages("101") == ["hacker, laptop"]

    @pytest.mark.asyncio
    async def test_second_keyword_hit(self, registry, no_sleep, shorts_format):
        source = FakeSource({"laptop": "102"})

        preview = await _service(source, registry, no_sleep).search_video_preview(
            ["hacker", "laptop", "code"], 3, shorts_format
        )

        assert preview.video_id == "102"
        assert source.queries == [("hacker", 3), ("laptop", 3)]

    @pytest.mark.asyncio
    async def test_combined_query_uses_long_keywords(self, registry, no_sleep, shorts_format):
        source = FakeSource({"cyber OR phishing OR scam": "103"})
        keywords = ["ai", "cyber", "ok", "phishing", "scam", "email"]

        preview = await _service(source, registry, no_sleep).search_video_preview(
            keywords, 1, shorts_format
        )

        assert preview.video_id == "103"
        assert source.queries == [("ai", 1), ("cyber", 1), ("cyber OR phishing OR scam", 1)]

    @pytest.mark.asyncio
    async def test_fallback_keywords_use_random_page(self, registry, no_sleep, shorts_format):
        source = FakeSource({"business": "104"})

        preview = await _service(source, registry, no_sleep).search_video_preview(
            ["ab", "cd"], 1, shorts_format
        )

        assert preview.video_id == "104"
        fallback_queries = [q for q in source.queries if q[0] in ("technology", "business")]
        assert [q[0] for q in fallback_queries] == ["technology", "business"]
        assert all(1 <= page <= 5 for _, page in fallback_queries)
        assert preview.current_page == 1

    @pytest.mark.asyncio
    async def test_no_usable_video(self, registry, no_sleep, shorts_format):
        service = _service(FakeSource(), registry, no_sleep)

        with pytest.raises(NoUsableResourceFound) as exc_info:
            await service.search_video_preview(["hacker"], 1, shorts_format)

        assert exc_info.value.keywords == ["hacker"]

    @pytest.mark.asyncio
    async def test_used_video_is_never_offered_twice(self, registry, no_sleep, shorts_format):
        source = FakeSource({"hacker": "101"})
        service = _service(source, registry, no_sleep)
        await service.search_video_preview(["hacker"], 1, shorts_format)

        with pytest.raises(NoUsableResourceFound):
            await service.search_video_preview(["hacker"], 2, shorts_format)

    @pytest.mark.asyncio
    async def test_repeated_search_is_cached(self, registry, no_sleep, shorts_format):
        source = FakeSource({"hacker": "101"})
        service = _service(source, registry, no_sleep)

        first = await service.search_video_preview(["hacker"], 1, shorts_format)
        second = await service.search_video_preview(["hacker"], 1, shorts_format)

        assert first == second
        assert len(source.queries) == 1
        assert registry.usages("101") == ["hacker"]

    @pytest.mark.asyncio
    async def test_rate_limit_retries_strategy_chain(self, registry, no_sleep, shorts_format):
        source = FakeSource({"hacker": "101"}, rate_limited=1)

        preview = await _service(source, registry, no_sleep).search_video_preview(
            ["hacker"], 1, shorts_format
        )

        assert preview.video_id == "101"
        no_sleep.assert_awaited_once_with(1.0)
