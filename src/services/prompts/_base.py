"""Base utilities for prompts module.

Contains shared helpers for parsing model replies.
"""

import re

_LIST_MARKER = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def strip_list_markers(line: str) -> str:
    """Remove a leading bullet or "1." style marker from a reply line."""
    return _LIST_MARKER.sub("", line).strip()


def split_lines(text: str) -> list[str]:
    """Split a one-item-per-line reply into clean, non-empty items."""
    items = []
    for line in text.strip().split("\n"):
        item = strip_list_markers(line)
        if item:
            items.append(item)
    return items


def split_keywords(text: str) -> list[str]:
    """Split a comma-separated keyword reply."""
    return [k.strip() for k in text.split(",") if k.strip()]


def split_sentences(script: str) -> list[str]:
    """Split a narration script into sentences at terminal punctuation."""
    return [s.strip() for s in _SENTENCE_BOUNDARY.split(script.strip()) if s.strip()]
