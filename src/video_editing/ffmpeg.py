"""Async wrappers around the ffmpeg and ffprobe binaries.

Every invocation has a time budget; a process that overruns is killed.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

ENCODE_TIMEOUT_SECONDS = 600.0
PROBE_TIMEOUT_SECONDS = 30.0


class FFmpegError(Exception):
    """Raised when an ffmpeg or ffprobe invocation fails or times out."""

    pass


class FFmpegRunner:
    """Runs ffmpeg/ffprobe as subprocesses."""

    def __init__(
        self,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        encode_timeout: float = ENCODE_TIMEOUT_SECONDS,
        probe_timeout: float = PROBE_TIMEOUT_SECONDS,
    ):
        self.ffmpeg_bin = ffmpeg_bin
        self.ffprobe_bin = ffprobe_bin
        self.encode_timeout = encode_timeout
        self.probe_timeout = probe_timeout

    async def _exec(self, cmd: list[str], timeout: float, description: str) -> bytes:
        proc = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise FFmpegError(f"{description} timed out after {timeout:.0f}s") from e
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise

        if proc.returncode != 0:
            err = stderr.decode(errors="replace")
            logger.error(f"FFmpeg stderr: {err[-1000:]}")
            raise FFmpegError(f"FFmpeg failed ({description}): {err[-500:]}")
        return stdout

    async def run(self, args: list[str], description: str = "") -> None:
        """Run ffmpeg with the given arguments (overwriting outputs).

        Args:
            args: Arguments after "ffmpeg -y"
            description: Human-readable description for logging

        Raises:
            FFmpegError: On non-zero exit code or timeout
        """
        cmd = [self.ffmpeg_bin, "-y", "-hide_banner", "-loglevel", "error", *args]
        logger.debug(f"FFmpeg: {description}")
        logger.debug(f"Command: {' '.join(cmd)}")
        await self._exec(cmd, self.encode_timeout, description)

    async def probe_duration(self, path: Union[str, Path]) -> float:
        """Get the duration of a media file in seconds, rounded to milliseconds.

        Raises:
            FFmpegError: If ffprobe fails or reports no duration
        """
        cmd = [
            self.ffprobe_bin,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "json",
            str(path),
        ]
        stdout = await self._exec(cmd, self.probe_timeout, f"probe {Path(path).name}")
        try:
            data = json.loads(stdout)
            duration = float(data["format"]["duration"])
        except (ValueError, KeyError, TypeError) as e:
            raise FFmpegError(f"No duration reported for {path}") from e
        return round(duration, 3)
