"""FFmpeg-based final assembly for a short.

Takes the edited clips of one topic and renders the finished video:

1. Normalize the optional logo outro to the output format
2. Concatenate clips (and the logo) with the concat demuxer
3. Write the sentence subtitles and burn them in

Intermediate files live in the run's temp directory and are removed by
TempFileManager.cleanup().
"""

import logging
from pathlib import Path
from typing import Optional, Union

from models.content import EditedClips
from models.video import VideoFormat
from utils.temp_files import TempFileManager, sanitize_file_name
from video_editing.ffmpeg import FFmpegError, FFmpegRunner
from video_editing.subtitle_engine import SubtitleEngine
from video_editing.timing import ConcatenationCheck, TimingSynchronizer

logger = logging.getLogger(__name__)

FPS = 30
CRF = 23
PRESET = "medium"
AUDIO_BITRATE = "192k"
AUDIO_SAMPLE_RATE = "48000"

ENCODE_ARGS = [
    "-c:v", "libx264",
    "-preset", PRESET,
    "-crf", str(CRF),
    "-c:a", "aac",
    "-b:a", AUDIO_BITRATE,
    "-movflags", "+faststart",
]


class VideoComposerError(Exception):
    """Raised when final assembly of a short fails."""

    pass


def escape_filter_path(path: Union[str, Path]) -> str:
    """Escape a file path for use inside an ffmpeg filter argument."""
    return str(Path(path).resolve()).replace("\\", "/").replace(":", "\\:")


class VideoComposer:
    """Assembles the final video from edited clips using FFmpeg."""

    def __init__(
        self,
        ffmpeg: FFmpegRunner,
        temp_files: TempFileManager,
        output_dir: Union[str, Path] = "output",
        logo_video_path: Optional[Union[str, Path]] = None,
        timing: Optional[TimingSynchronizer] = None,
        subtitle_engine: Optional[SubtitleEngine] = None,
    ):
        self.ffmpeg = ffmpeg
        self.temp_files = temp_files
        self.output_dir = Path(output_dir)
        self.logo_video_path = Path(logo_video_path) if logo_video_path else None
        self.timing = timing or TimingSynchronizer()
        self.subtitle_engine = subtitle_engine or SubtitleEngine()

    async def prepare_logo_video(self, video_format: VideoFormat) -> Optional[Path]:
        """Re-encode the logo outro to match the clips.

        Returns:
            Path to the prepared logo, or None when no logo file exists
        """
        if self.logo_video_path is None or not self.logo_video_path.exists():
            logger.warning(f"Logo video not found: {self.logo_video_path}")
            return None

        output_path = self.temp_files.get_temp_path("prepared_logo.mp4")
        w, h = video_format.width, video_format.height
        await self.ffmpeg.run(
            [
                "-i", str(self.logo_video_path),
                "-vf",
                f"scale={w}:{h}:force_original_aspect_ratio=increase,crop={w}:{h},fps={FPS}",
                "-pix_fmt", "yuv420p",
                "-ar", AUDIO_SAMPLE_RATE,
                *ENCODE_ARGS,
                str(output_path),
            ],
            "prepare logo video",
        )
        return output_path

    def _write_concat_list(self, paths: list[Path], name: str) -> Path:
        list_path = self.temp_files.get_temp_path(name)
        lines = [f"file '{p.resolve().as_posix()}'" for p in paths]
        list_path.write_text("\n".join(lines), encoding="utf-8")
        return list_path

    async def merge_clips(self, clips: list[Union[str, Path]]) -> Path:
        """Concatenate clips without a logo outro."""
        if not clips:
            raise VideoComposerError("No clips to merge")

        output_path = self.temp_files.get_temp_path("merged.mp4")
        list_path = self._write_concat_list([Path(c) for c in clips], "filelist.txt")
        await self.ffmpeg.run(
            ["-f", "concat", "-safe", "0", "-i", str(list_path), *ENCODE_ARGS, str(output_path)],
            f"concatenate {len(clips)} clips",
        )
        return output_path

    async def merge_clips_with_logo(
        self, clips: list[Union[str, Path]], logo_path: Union[str, Path]
    ) -> tuple[Path, ConcatenationCheck]:
        """Concatenate clips followed by the logo outro.

        The output is cut at the expected total length and the result is
        compared against it; a mismatch is only reported.
        """
        if not clips:
            raise VideoComposerError("No clips to merge")

        clip_paths = [Path(c) for c in clips]
        expected = 0.0
        for clip in clip_paths:
            duration = await self.ffmpeg.probe_duration(clip)
            logger.debug(f"Clip {clip.name}: {duration}s")
            expected += duration
        logo_duration = await self.ffmpeg.probe_duration(logo_path)
        expected += logo_duration
        logger.info(f"Logo {logo_duration}s, expected total {expected:.3f}s")

        output_path = self.temp_files.get_temp_path("merged_with_logo.mp4")
        list_path = self._write_concat_list(clip_paths + [Path(logo_path)], "filelist.txt")
        await self.ffmpeg.run(
            [
                "-f", "concat", "-safe", "0", "-i", str(list_path),
                *ENCODE_ARGS,
                "-t", f"{expected:.3f}",
                str(output_path),
            ],
            f"concatenate {len(clips)} clips with logo",
        )

        actual = await self.ffmpeg.probe_duration(output_path)
        check = self.timing.verify_concatenation(actual, expected)
        logger.info(f"Merged video length: {actual}s")
        return output_path, check

    async def render_subtitles(
        self,
        video_path: Union[str, Path],
        subtitle_path: Union[str, Path],
        output_path: Union[str, Path],
    ) -> Path:
        """Burn an ASS subtitle file into the video."""
        video_path = Path(video_path)
        subtitle_path = Path(subtitle_path)
        if not video_path.exists():
            raise VideoComposerError(f"Video file not found: {video_path}")
        if not subtitle_path.exists():
            raise VideoComposerError(f"Subtitle file not found: {subtitle_path}")

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        await self.ffmpeg.run(
            [
                "-i", str(video_path),
                "-vf", f"subtitles='{escape_filter_path(subtitle_path)}'",
                "-c:v", "libx264",
                "-preset", PRESET,
                "-crf", str(CRF),
                "-c:a", "copy",
                "-movflags", "+faststart",
                "-max_muxing_queue_size", "9999",
                str(output_path),
            ],
            "burn subtitles",
        )
        return output_path

    async def compose(
        self, topic: str, edited: EditedClips, video_format: VideoFormat
    ) -> Path:
        """Render the finished short for a topic.

        Args:
            topic: Topic title (used for the output file name)
            edited: Clips with their durations and sentences, in final order
            video_format: Output frame size

        Returns:
            Path to the finished video

        Raises:
            VideoComposerError: If any assembly step fails
        """
        if not len(edited):
            raise VideoComposerError(f"No clips to assemble for '{topic}'")

        logger.info(
            f"Assembling final video: {len(edited)} clips, {edited.total_duration:.2f}s"
        )
        try:
            logo = await self.prepare_logo_video(video_format)
            if logo is None:
                logger.info("Creating video without logo")
                merged = await self.merge_clips(edited.clips)
            else:
                logger.info("Creating video with logo")
                merged, _ = await self.merge_clips_with_logo(edited.clips, logo)

            timeline = self.timing.build_subtitle_timeline(edited.sentences, edited.durations)
            subtitle_path = self.subtitle_engine.write(
                timeline, self.temp_files.get_temp_path("subtitles.ass")
            )

            final_name = sanitize_file_name(topic) or "short"
            final_path = self.output_dir / f"{final_name}.mp4"
            await self.render_subtitles(merged, subtitle_path, final_path)
        except (FFmpegError, ValueError, OSError) as e:
            raise VideoComposerError(f"Final assembly failed for '{topic}': {e}") from e

        logger.info(f"Final video saved: {final_path}")
        return final_path
