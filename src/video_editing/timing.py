"""Timing reconciliation between narration, footage and subtitles.

Narration audio and stock footage are produced independently and never
have the same length. For each content unit both are stretched/padded to
a shared target duration (narration + a short trailing buffer), so the
mux step can simply pair them. Subtitles are then laid out cumulatively
over the final clip durations.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

logger = logging.getLogger(__name__)

TRAILING_BUFFER_SECONDS = 0.5
CONCAT_TOLERANCE_SECONDS = 1.0


@dataclass(frozen=True)
class SyncPlan:
    """How one content unit's footage and narration are brought to one length."""

    target_duration: float
    speed_factor: float
    padding_duration: float

    @property
    def pts_multiplier(self) -> float:
        """Multiplier for ffmpeg setpts that stretches footage to the target."""
        return 1 / self.speed_factor


@dataclass(frozen=True)
class SubtitleEntry:
    start: float
    end: float
    text: str

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class SubtitleTimeline:
    """Ordered subtitle entries, contiguous over the final clip order."""

    entries: list[SubtitleEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def total_duration(self) -> float:
        return self.entries[-1].end if self.entries else 0.0


@dataclass(frozen=True)
class ConcatenationCheck:
    """Comparison of an assembled video's length with the expected sum."""

    actual: float
    expected: float
    tolerance: float
    ok: bool

    @property
    def delta(self) -> float:
        return self.actual - self.expected


class TimingSynchronizer:
    """Deterministic timing computations for clip assembly."""

    def __init__(
        self,
        trailing_buffer: float = TRAILING_BUFFER_SECONDS,
        concat_tolerance: float = CONCAT_TOLERANCE_SECONDS,
    ):
        self.trailing_buffer = trailing_buffer
        self.concat_tolerance = concat_tolerance

    def compute_target_duration(self, audio_duration: float) -> float:
        """Narration length plus the trailing buffer, rounded up to 0.01s."""
        # round() first so binary noise like 1280.0000000000002 does not ceil up
        hundredths = round((audio_duration + self.trailing_buffer) * 100, 6)
        return math.ceil(hundredths) / 100

    @staticmethod
    def compute_speed_factor(original_video_duration: float, target_duration: float) -> float:
        """Playback-rate factor that makes the footage span target_duration."""
        if target_duration <= 0:
            raise ValueError(f"Target duration must be positive, got {target_duration}")
        if original_video_duration <= 0:
            raise ValueError(
                f"Video duration must be positive, got {original_video_duration}"
            )
        return original_video_duration / target_duration

    @staticmethod
    def compute_padding(target_duration: float, audio_duration: float) -> float:
        """Trailing silence needed for the narration to reach target_duration."""
        return max(0.0, target_duration - audio_duration)

    def plan(self, audio_duration: float, original_video_duration: float) -> SyncPlan:
        """Build the SyncPlan for one content unit."""
        target = self.compute_target_duration(audio_duration)
        return SyncPlan(
            target_duration=target,
            speed_factor=self.compute_speed_factor(original_video_duration, target),
            padding_duration=self.compute_padding(target, audio_duration),
        )

    @staticmethod
    def build_subtitle_timeline(
        sentences: Sequence[str], durations: Sequence[float]
    ) -> SubtitleTimeline:
        """Lay sentences out back to back over their clip durations.

        Text is kept verbatim; escaping is left to the subtitle writer.
        """
        if len(sentences) != len(durations):
            raise ValueError(
                f"Got {len(sentences)} sentences but {len(durations)} durations"
            )

        timeline = SubtitleTimeline()
        offset = 0.0
        for sentence, duration in zip(sentences, durations):
            if duration < 0:
                raise ValueError(f"Negative clip duration: {duration}")
            timeline.entries.append(
                SubtitleEntry(start=offset, end=offset + duration, text=sentence)
            )
            offset += duration
        return timeline

    def verify_concatenation(
        self,
        actual_total_duration: float,
        expected_total_duration: float,
        tolerance: float | None = None,
    ) -> ConcatenationCheck:
        """Compare the assembled length with the expected sum. Mismatch only warns."""
        tolerance = self.concat_tolerance if tolerance is None else tolerance
        ok = abs(actual_total_duration - expected_total_duration) <= tolerance
        if not ok:
            logger.warning(
                f"Expected duration {expected_total_duration:.3f}s but assembled "
                f"video is {actual_total_duration:.3f}s"
            )
        return ConcatenationCheck(
            actual=actual_total_duration,
            expected=expected_total_duration,
            tolerance=tolerance,
            ok=ok,
        )


def format_timestamp(seconds: float) -> str:
    """Format seconds as an ASS timestamp (H:MM:SS.cc), flooring centiseconds."""
    total_cs = int(math.floor(round(seconds * 100, 6)))
    hours, rem = divmod(total_cs, 360000)
    minutes, rem = divmod(rem, 6000)
    secs, centis = divmod(rem, 100)
    return f"{hours}:{minutes:02d}:{secs:02d}.{centis:02d}"
