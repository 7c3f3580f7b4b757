"""Per-sentence clip assembly.

Each content unit becomes one clip: the footage is scaled, cropped and
retimed to span the narration plus a short trailing buffer, the narration
is padded with silence to the same length, and the two are muxed.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from models.content import ClipResult
from models.video import VideoFormat
from utils.temp_files import TempFileManager
from video_editing.ffmpeg import FFmpegError, FFmpegRunner
from video_editing.timing import SyncPlan, TimingSynchronizer

logger = logging.getLogger(__name__)

FPS = 30
CRF = 23
PRESET = "medium"
AUDIO_BITRATE = "192k"
AUDIO_SAMPLE_RATE = "48000"


def escape_drawtext(text: str) -> str:
    """Make text safe inside a quoted drawtext value."""
    return (
        text.replace("\\", "/")
        .replace("'", "’")
        .replace(":", "\\:")
        .replace("%", "\\%")
    )


class ClipEditor:
    """Builds synchronized clips from downloaded footage and narration."""

    def __init__(
        self,
        ffmpeg: FFmpegRunner,
        temp_files: TempFileManager,
        timing: Optional[TimingSynchronizer] = None,
    ):
        self.ffmpeg = ffmpeg
        self.temp_files = temp_files
        self.timing = timing or TimingSynchronizer()

    async def adjust_video(
        self,
        video_path: Union[str, Path],
        plan: SyncPlan,
        video_format: VideoFormat,
    ) -> Path:
        """Scale/crop to the output frame and retime footage to the plan's target."""
        video_path = Path(video_path)
        output_path = self.temp_files.get_temp_path(f"adjusted_{video_path.name}")
        w, h = video_format.width, video_format.height
        filters = ",".join([
            f"scale={w}:{h}:force_original_aspect_ratio=increase",
            f"crop={w}:{h}",
            f"setpts={plan.pts_multiplier}*PTS",
            f"fps={FPS}",
        ])

        await self.ffmpeg.run(
            [
                "-i", str(video_path),
                "-vf", filters,
                "-an",
                "-c:v", "libx264",
                "-preset", PRESET,
                "-crf", str(CRF),
                "-pix_fmt", "yuv420p",
                "-profile:v", "high",
                "-level", "4.1",
                "-movflags", "+faststart",
                "-t", f"{plan.target_duration}",
                str(output_path),
            ],
            f"adjust video {video_path.name} to {w}x{h}, {plan.target_duration}s",
        )
        return output_path

    async def add_silence_padding(
        self,
        audio_path: Union[str, Path],
        plan: SyncPlan,
    ) -> Path:
        """Append trailing silence so the narration spans the plan's target."""
        audio_path = Path(audio_path)
        output_path = self.temp_files.get_temp_path(f"padded_{audio_path.name}")
        filters = ",".join([
            "asetpts=PTS-STARTPTS",
            "aresample=async=1000",
            f"apad=pad_dur={plan.padding_duration}",
        ])

        await self.ffmpeg.run(
            [
                "-i", str(audio_path),
                "-af", filters,
                "-c:a", "aac",
                "-b:a", AUDIO_BITRATE,
                "-ar", AUDIO_SAMPLE_RATE,
                "-t", f"{plan.target_duration}",
                str(output_path),
            ],
            f"pad audio {audio_path.name}",
        )
        return output_path

    async def merge_audio_video(
        self, video_path: Union[str, Path], audio_path: Union[str, Path]
    ) -> Path:
        """Mux the retimed footage with the padded narration."""
        video_path = Path(video_path)
        output_path = self.temp_files.get_temp_path(f"merged_{video_path.name}")

        await self.ffmpeg.run(
            [
                "-i", str(video_path),
                "-i", str(audio_path),
                "-c:v", "copy",
                "-c:a", "aac",
                "-b:a", AUDIO_BITRATE,
                "-ar", AUDIO_SAMPLE_RATE,
                "-map", "0:v:0",
                "-map", "1:a:0",
                "-shortest",
                "-max_interleave_delta", "0",
                "-movflags", "+faststart",
                str(output_path),
            ],
            f"merge audio/video {video_path.name}",
        )
        return output_path

    async def add_attribution(self, video_path: Union[str, Path], attribution: str) -> Path:
        """Overlay the attribution text; returns the input clip if that fails."""
        video_path = Path(video_path)
        output_path = self.temp_files.get_temp_path(f"with_attribution_{video_path.name}")
        drawtext = (
            f"drawtext=text='{escape_drawtext(attribution)}'"
            ":fontsize=20:fontcolor=white:x=w-tw-20:y=h-th-20"
        )

        try:
            await self.ffmpeg.run(
                [
                    "-i", str(video_path),
                    "-vf", drawtext,
                    "-c:v", "libx264",
                    "-preset", PRESET,
                    "-crf", str(CRF),
                    "-c:a", "copy",
                    str(output_path),
                ],
                f"attribution: {attribution}",
            )
        except FFmpegError as e:
            logger.warning(f"Attribution overlay failed ({e}), using clip without it")
            return video_path
        return output_path

    async def create_clip(
        self,
        video_path: Union[str, Path],
        audio_path: Union[str, Path],
        sentence: str,
        video_format: VideoFormat,
        attribution: Optional[str] = None,
    ) -> ClipResult:
        """Build the final clip for one content unit.

        Returns:
            ClipResult with the clip path and its probed duration

        Raises:
            FFmpegError: If any encode or probe fails
        """
        audio_duration, video_duration = await asyncio.gather(
            self.ffmpeg.probe_duration(audio_path),
            self.ffmpeg.probe_duration(video_path),
        )
        plan = self.timing.plan(audio_duration, video_duration)
        logger.debug(
            f"Sync plan for {Path(video_path).name}: target {plan.target_duration}s, "
            f"speed x{plan.speed_factor:.3f}, padding {plan.padding_duration:.2f}s"
        )

        adjusted_video, padded_audio = await asyncio.gather(
            self.adjust_video(video_path, plan, video_format),
            self.add_silence_padding(audio_path, plan),
        )
        clip = await self.merge_audio_video(adjusted_video, padded_audio)

        if attribution:
            clip = await self.add_attribution(clip, attribution)

        duration = await self.ffmpeg.probe_duration(clip)
        return ClipResult(clip=str(clip), duration=duration, sentence=sentence)
