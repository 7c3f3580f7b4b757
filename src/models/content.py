"""Content plan data models."""

from dataclasses import dataclass, field
from typing import Optional

from models.video import VideoPreview


@dataclass
class ContentUnit:
    """One narration sentence and everything produced for it.

    Created by content planning and enriched stage by stage: footage and
    narration paths after media generation, clip path and duration after
    editing.
    """

    sentence: str
    keywords: list[str] = field(default_factory=list)
    video_preview: Optional[VideoPreview] = None
    video_path: Optional[str] = None
    audio_path: Optional[str] = None
    clip_path: Optional[str] = None
    duration: Optional[float] = None

    @property
    def has_media(self) -> bool:
        return bool(self.video_path and self.audio_path)


@dataclass
class ClipResult:
    """A rendered clip (footage + narration) for one content unit."""

    clip: str
    duration: float
    sentence: str


@dataclass
class EditedClips:
    """Clips ready for final assembly, in final order."""

    clips: list[str] = field(default_factory=list)
    durations: list[float] = field(default_factory=list)
    sentences: list[str] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: list[ClipResult]) -> "EditedClips":
        return cls(
            clips=[r.clip for r in results],
            durations=[r.duration for r in results],
            sentences=[r.sentence for r in results],
        )

    @property
    def total_duration(self) -> float:
        return sum(self.durations)

    def __len__(self) -> int:
        return len(self.clips)
