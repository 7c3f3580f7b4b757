"""Video download service for stock footage over direct HTTP."""

import asyncio
import logging
from pathlib import Path

import aiohttp

from utils.retry import NetworkError, RemoteTimeoutError
from utils.temp_files import TempFileManager

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
USER_AGENT = "Mozilla/5.0 (compatible; shortsmith/1.0)"


class VideoDownloader:
    """Streams one stock video per content unit into the temp directory."""

    def __init__(self, temp_files: TempFileManager, timeout: float = 60.0):
        """Initialize downloader.

        Args:
            temp_files: Temp file manager that owns the downloaded files
            timeout: Total budget per download in seconds
        """
        self.temp_files = temp_files
        self.timeout = timeout

    async def download_video(self, url: str, index: int) -> str:
        """Download a video to video_{index}.mp4.

        A partially written file is removed on any failure.

        Args:
            url: Direct file URL
            index: Content unit index, used in the file name

        Returns:
            Path to the downloaded file

        Raises:
            RemoteTimeoutError: If the download exceeds the time budget
            NetworkError: On HTTP or transport errors
        """
        video_path = self.temp_files.get_temp_path(f"video_{index}.mp4")
        logger.info(f"[{index}] Downloading video: {url}")

        try:
            total_size = await self._stream_to_file(url, video_path)
        except asyncio.TimeoutError as e:
            self._remove_partial(video_path)
            logger.error(f"[{index}] Download timed out ({self.timeout:.0f}s)")
            raise RemoteTimeoutError(f"Video {index} download timed out") from e
        except (aiohttp.ClientError, OSError) as e:
            self._remove_partial(video_path)
            logger.error(f"[{index}] Download error: {e}")
            raise NetworkError(f"Video {index} download failed: {e}") from e
        except asyncio.CancelledError:
            self._remove_partial(video_path)
            raise

        logger.info(f"[{index}] Download complete ({total_size / 1024 / 1024:.1f}MB)")
        return str(video_path)

    async def _stream_to_file(self, url: str, video_path: Path) -> int:
        total_size = 0
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={"User-Agent": USER_AGENT},
        ) as session:
            async with session.get(url) as response:
                response.raise_for_status()
                with open(video_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        f.write(chunk)
                        total_size += len(chunk)
        return total_size

    @staticmethod
    def _remove_partial(video_path: Path) -> None:
        try:
            video_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove partial download {video_path.name}: {e}")
