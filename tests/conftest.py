"""Shared pytest fixtures for shortsmith tests."""

import sys
import tempfile
from pathlib import Path
from typing import Dict, Generator
from unittest.mock import AsyncMock, Mock

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config(temp_dir) -> Dict:
    """Sample configuration for testing."""
    return {
        "gemini_api_key": "test_gemini_key",
        "pexels_api_key": "test_pexels_key",
        "tts_api_key": "test_openai_key",
        "gemini_model": "gemini-2.5-flash",
        "tts_url": "https://tts.example.com/v1/audio/speech",
        "tts_model": "tts-1",
        "tts_voice": "nova",
        "script_seconds": 40,
        "script_language": "English",
        "channel_greeting": None,
        "logo_video_path": str(temp_dir / "logo.mp4"),
        "used_videos_file": str(temp_dir / "used_videos.json"),
        "temp_dir": str(temp_dir / "temp"),
        "output_dir": str(temp_dir / "output"),
        "max_concurrent_tasks": 4,
        "task_retries": 2,
        "api_max_retries": 3,
        "api_base_delay": 1.0,
        "api_max_delay": 10.0,
        "remote_timeout_seconds": 30.0,
        "download_timeout_seconds": 60.0,
        "probe_timeout_seconds": 30.0,
        "min_clip_duration": 3,
        "max_clip_duration": 15,
        "search_per_page": 15,
        "fallback_keywords": ["technology", "business"],
        "log_level": "INFO",
        "json_logs": False,
    }


@pytest.fixture
def no_sleep():
    """Awaitable sleep replacement that records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def shorts_format():
    from utils.config import VIDEO_FORMATS

    return VIDEO_FORMATS["shorts"]


@pytest.fixture
def landscape_format():
    from utils.config import VIDEO_FORMATS

    return VIDEO_FORMATS["landscape"]


def make_pexels_video(
    video_id: int,
    duration: int = 8,
    width: int = 1080,
    height: int = 1920,
    file_type: str = "video/mp4",
    user_name: str = "Jane Doe",
) -> dict:
    """Build one video entry shaped like the Pexels search API response."""
    return {
        "id": video_id,
        "width": width,
        "height": height,
        "url": f"https://www.pexels.com/video/sample-{video_id}/",
        "image": f"https://images.pexels.com/videos/{video_id}/thumb.jpeg",
        "duration": duration,
        "user": {"name": user_name},
        "video_files": [
            {
                "id": video_id * 10,
                "quality": "hd",
                "file_type": file_type,
                "width": width,
                "height": height,
                "link": f"https://videos.pexels.com/{video_id}/hd.mp4",
            }
        ],
    }


@pytest.fixture
def pexels_video():
    """Factory for Pexels API video dicts."""
    return make_pexels_video


@pytest.fixture
def mock_ffmpeg():
    """FFmpegRunner double whose encodes create their output file."""
    mock = Mock()

    async def run(args, description=""):
        Path(args[-1]).parent.mkdir(parents=True, exist_ok=True)
        Path(args[-1]).write_bytes(b"\x00")

    mock.run = AsyncMock(side_effect=run)
    mock.probe_duration = AsyncMock(return_value=5.0)
    return mock
