"""TTS Service - HTTP client for narration audio via an OpenAI-compatible speech endpoint."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx

from utils.config import OPENAI_SPEECH_URL
from utils.retry import RateLimitedExecutor, RateLimitExceeded
from utils.temp_files import TempFileManager

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 4000


class TTSServiceError(Exception):
    """Error from TTS service."""

    pass


class TTSService:
    """HTTP client for speech synthesis, one AAC file per sentence."""

    def __init__(
        self,
        api_key: str,
        temp_files: TempFileManager,
        url: str = OPENAI_SPEECH_URL,
        model: str = "tts-1",
        voice: str = "nova",
        timeout: float = 30.0,
        executor: Optional[RateLimitedExecutor] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize TTS service.

        Args:
            api_key: Bearer token for the speech endpoint
            temp_files: Temp file manager that owns the generated audio
            url: Speech endpoint URL
            model: Speech model name
            voice: Voice name
            timeout: Request budget in seconds
            executor: Retry policy for rate-limited requests
            client: Pre-built HTTP client (tests)
        """
        self.api_key = api_key
        self.temp_files = temp_files
        self.url = url
        self.model = model
        self.voice = voice
        self.executor = executor or RateLimitedExecutor()
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def generate_audio(self, text: str, index: int) -> str:
        """Synthesize narration for one sentence.

        Args:
            text: Sentence to speak (truncated to 4000 characters)
            index: Content unit index, used in the file name

        Returns:
            Path to the written AAC file

        Raises:
            TTSServiceError: If synthesis fails for any reason but throttling
            RateLimitExceeded: If the endpoint keeps throttling after all retries
        """
        audio_path = self.temp_files.get_temp_path(f"audio_{index}.aac")

        async def call() -> bytes:
            try:
                response = await self.client.post(
                    self.url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "model": self.model,
                        "input": text[:MAX_INPUT_CHARS],
                        "voice": self.voice,
                        "response_format": "aac",
                    },
                )
                response.raise_for_status()
            except httpx.TimeoutException as e:
                raise TTSServiceError(f"TTS request timed out for sentence {index}") from e
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 429:
                    raise RateLimitExceeded("TTS rate limit exceeded") from e
                raise TTSServiceError(
                    f"TTS server error {e.response.status_code}: {e.response.text[:200]}"
                ) from e
            except httpx.HTTPError as e:
                raise TTSServiceError(f"TTS generation failed: {e}") from e

            if not response.content:
                raise TTSServiceError(f"Empty audio returned for sentence {index}")
            return response.content

        audio = await self.executor.execute_with_retry(call)
        await asyncio.to_thread(Path(audio_path).write_bytes, audio)
        logger.info(f"[{index}] Audio generated: {audio_path}")
        return str(audio_path)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
