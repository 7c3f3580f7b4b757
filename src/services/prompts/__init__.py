"""Prompts module - centralized prompt templates for AI services.

Re-exports all prompt constants and utilities for easy importing:
    from services.prompts import SHORTS_SCRIPT_V1, split_sentences
"""

from services.prompts._base import (
    split_keywords,
    split_lines,
    split_sentences,
    strip_list_markers,
)
from services.prompts.shorts import (
    ALTERNATIVE_KEYWORDS_V1,
    KEYWORD_TRANSLATOR_V1,
    SHORTS_SCRIPT_V1,
    TOPIC_SUGGESTER_V1,
)

__all__ = [
    # Utilities
    "split_keywords",
    "split_lines",
    "split_sentences",
    "strip_list_markers",
    # Shorts prompts
    "TOPIC_SUGGESTER_V1",
    "SHORTS_SCRIPT_V1",
    "KEYWORD_TRANSLATOR_V1",
    "ALTERNATIVE_KEYWORDS_V1",
]
