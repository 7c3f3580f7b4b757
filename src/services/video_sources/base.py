"""Interface shared by stock footage providers."""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from models.video import MediaDescriptor, VideoFormat
from services.used_video_registry import UsedResourceRegistry


class VideoSource(ABC):
    """A searchable catalogue of stock clips.

    Subclasses talk to one provider. ``find_usable`` combines a search with
    the subclass's acceptance rule so callers only ever see footage that can
    go straight into a clip.
    """

    @abstractmethod
    def get_source_name(self) -> str: ...

    @abstractmethod
    async def search(
        self, query: str, page: int, video_format: VideoFormat
    ) -> list[MediaDescriptor]:
        """One page of results for ``query``; empty when nothing matched.

        ``video_format`` is passed so providers can filter by orientation.
        """

    @abstractmethod
    def is_usable(self, video: MediaDescriptor, registry: UsedResourceRegistry) -> bool: ...

    async def find_usable(
        self,
        query: str,
        page: int,
        video_format: VideoFormat,
        registry: UsedResourceRegistry,
    ) -> Optional[MediaDescriptor]:
        """First result of ``search`` that passes ``is_usable``, or None."""
        videos = await self.search(query, page, video_format)
        if not videos:
            return None
        # Registry reads hit the disk
        return await asyncio.to_thread(
            lambda: next((v for v in videos if self.is_usable(v, registry)), None)
        )
