"""Local media assembly: ffmpeg wrappers, clip timing, subtitles and final composition."""

from video_editing.clip_editor import ClipEditor
from video_editing.ffmpeg import FFmpegError, FFmpegRunner
from video_editing.subtitle_engine import SubtitleEngine
from video_editing.timing import (
    ConcatenationCheck,
    SubtitleEntry,
    SubtitleTimeline,
    SyncPlan,
    TimingSynchronizer,
    format_timestamp,
)
from video_editing.video_composer import VideoComposer, VideoComposerError

__all__ = [
    "ClipEditor",
    "ConcatenationCheck",
    "FFmpegError",
    "FFmpegRunner",
    "SubtitleEngine",
    "SubtitleEntry",
    "SubtitleTimeline",
    "SyncPlan",
    "TimingSynchronizer",
    "VideoComposer",
    "VideoComposerError",
    "format_timestamp",
]
