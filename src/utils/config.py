"""Configuration loading and validation for shortsmith."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from models.video import VideoFormat

logger = logging.getLogger(__name__)

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")

VIDEO_FORMATS = {
    "shorts": VideoFormat(name="shorts", width=1080, height=1920),
    "landscape": VideoFormat(name="landscape", width=1920, height=1080),
}

OPENAI_SPEECH_URL = "https://api.openai.com/v1/audio/speech"
PEXELS_VIDEO_SEARCH_URL = "https://api.pexels.com/videos/search"


class ConfigurationError(Exception):
    """Raised at startup when required settings or credentials are missing."""

    pass


def load_config() -> dict:
    """Load configuration from environment variables."""

    # Helper function to resolve paths relative to project root
    def resolve_path(path: str | None, default_relative: str) -> str:
        if not path:
            return str(PROJECT_ROOT / default_relative)
        if Path(path).is_absolute():
            return path
        return str(PROJECT_ROOT / path)

    config = {
        # Required API keys
        "gemini_api_key": os.getenv("GEMINI_API_KEY"),
        "pexels_api_key": os.getenv("PEXELS_API_KEY"),
        "tts_api_key": os.getenv("OPENAI_API_KEY"),
        # Model configurations
        "gemini_model": os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        "tts_url": os.getenv("TTS_URL", OPENAI_SPEECH_URL),
        "tts_model": os.getenv("TTS_MODEL", "tts-1"),
        "tts_voice": os.getenv("TTS_VOICE", "nova"),
        # Script writing
        "script_seconds": int(os.getenv("SCRIPT_SECONDS", "40")),
        "script_language": os.getenv("SCRIPT_LANGUAGE", "English"),
        "channel_greeting": os.getenv("CHANNEL_GREETING"),  # Optional opening line
        # Files and folders
        "logo_video_path": resolve_path(os.getenv("LOGO_VIDEO_PATH"), "logo.mp4"),
        "used_videos_file": resolve_path(os.getenv("USED_VIDEOS_FILE"), "used_videos.json"),
        "temp_dir": resolve_path(os.getenv("TEMP_DIR"), "temp"),
        "output_dir": resolve_path(os.getenv("OUTPUT_DIR"), "output"),
        # Batch processing
        "max_concurrent_tasks": int(os.getenv("MAX_CONCURRENT_TASKS", "4")),
        "task_retries": int(os.getenv("TASK_RETRIES", "2")),
        # Remote call retry (rate limits only)
        "api_max_retries": int(os.getenv("API_MAX_RETRIES", "3")),
        "api_base_delay": float(os.getenv("API_BASE_DELAY", "1.0")),
        "api_max_delay": float(os.getenv("API_MAX_DELAY", "10.0")),
        # Timeouts
        "remote_timeout_seconds": float(os.getenv("REMOTE_TIMEOUT_SECONDS", "30")),
        "download_timeout_seconds": float(os.getenv("DOWNLOAD_TIMEOUT_SECONDS", "60")),
        "probe_timeout_seconds": float(os.getenv("PROBE_TIMEOUT_SECONDS", "30")),
        # Stock footage search
        "min_clip_duration": int(os.getenv("MIN_CLIP_DURATION", "3")),
        "max_clip_duration": int(os.getenv("MAX_CLIP_DURATION", "15")),
        "search_per_page": int(os.getenv("SEARCH_PER_PAGE", "15")),
        "fallback_keywords": [
            k.strip()
            for k in os.getenv("FALLBACK_KEYWORDS", "technology,business").split(",")
            if k.strip()
        ],
        # Logging
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "json_logs": os.getenv("JSON_LOGS", "false").lower() == "true",
    }

    return config


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []

    # Check required API keys
    if not config.get("gemini_api_key"):
        errors.append("GEMINI_API_KEY is required")
    if not config.get("pexels_api_key"):
        errors.append("PEXELS_API_KEY is required")
    if not config.get("tts_api_key"):
        errors.append("OPENAI_API_KEY is required for narration")

    if config.get("max_concurrent_tasks", 1) < 1:
        errors.append("MAX_CONCURRENT_TASKS must be at least 1")
    if config.get("task_retries", 0) < 0:
        errors.append("TASK_RETRIES cannot be negative")
    if config.get("api_max_retries", 1) < 1:
        errors.append("API_MAX_RETRIES must be at least 1")
    if config.get("min_clip_duration", 0) > config.get("max_clip_duration", 0):
        errors.append("MIN_CLIP_DURATION cannot exceed MAX_CLIP_DURATION")

    # Validate local paths
    output_dir = config.get("output_dir")
    if output_dir:
        try:
            Path(output_dir).mkdir(parents=True, exist_ok=True)
        except Exception as e:
            errors.append(f"Cannot create output folder: {e}")

    return errors


def require_valid_config(config: dict) -> dict:
    """Validate configuration, raising ConfigurationError if anything is wrong.

    A missing logo video is only a warning: shorts are assembled without it.
    """
    errors = validate_config(config)
    if errors:
        raise ConfigurationError("Configuration errors: " + "; ".join(errors))

    logo_path = config.get("logo_video_path")
    if logo_path and not Path(logo_path).exists():
        logger.warning(f"Logo video not found: {logo_path} (continuing without logo)")
    elif logo_path:
        logger.info(f"Logo video found: {logo_path}")

    return config
