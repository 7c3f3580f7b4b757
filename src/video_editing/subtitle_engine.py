"""Sentence-level subtitle writer.

Builds one ASS dialogue line per content unit with pysubs2. Subtitles are
burned into the video by VideoComposer.
"""

import logging
import math
from pathlib import Path
from typing import Union

import pysubs2

from video_editing.timing import SubtitleTimeline

logger = logging.getLogger(__name__)

STYLE_NAME = "Default"


def default_style() -> pysubs2.SSAStyle:
    """Bold white text on a translucent black box, bottom center."""
    return pysubs2.SSAStyle(
        fontname="Pretendard Black",
        fontsize=10,
        primarycolor=pysubs2.Color(255, 255, 255, 0),
        secondarycolor=pysubs2.Color(0, 0, 0, 0),
        outlinecolor=pysubs2.Color(0, 0, 0, 0),
        backcolor=pysubs2.Color(0, 0, 0, 128),
        bold=True,
        borderstyle=3,  # opaque box
        outline=3.0,
        shadow=1.0,
        alignment=pysubs2.Alignment.BOTTOM_CENTER,
        marginl=20,
        marginr=20,
        marginv=60,
    )


def to_ms(seconds: float) -> int:
    """Seconds to milliseconds, floored to whole centiseconds."""
    return int(math.floor(round(seconds * 100, 6))) * 10


class SubtitleEngine:
    """Writes a SubtitleTimeline to an ASS file."""

    def build(self, timeline: SubtitleTimeline) -> pysubs2.SSAFile:
        subs = pysubs2.SSAFile()
        subs.info["Title"] = "Subtitles"
        subs.styles[STYLE_NAME] = default_style()

        for entry in timeline:
            subs.events.append(
                pysubs2.SSAEvent(
                    start=to_ms(entry.start),
                    end=to_ms(entry.end),
                    text=entry.text,
                    style=STYLE_NAME,
                )
            )
        return subs

    def write(self, timeline: SubtitleTimeline, output_path: Union[str, Path]) -> Path:
        """Write the timeline as an ASS file.

        Args:
            timeline: Cumulative subtitle timeline
            output_path: Destination .ass path

        Returns:
            Path to the written file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.build(timeline).save(str(output_path), encoding="utf-8", format_="ass")
        logger.info(f"Subtitle file created: {output_path} ({len(timeline)} lines)")
        return output_path
