"""Prompt templates for short-form narrated videos.

Contains prompts for:
- TOPIC_SUGGESTER_V1: Five factual topic ideas from a keyword
- SHORTS_SCRIPT_V1: Narration script for one short
- KEYWORD_TRANSLATOR_V1: Stock-footage search keywords for one sentence
- ALTERNATIVE_KEYWORDS_V1: Broader keywords when the first search finds nothing
"""

# Template placeholders: {keyword}
TOPIC_SUGGESTER_V1 = """You are a professional YouTube content planner.
Suggest 5 engaging, fact-based video topics for the keyword below.
Do not use numbering, bullet points or other special characters.

Keyword: {keyword}

Reply with the topics only, one per line."""

# Template placeholders: {topic}, {seconds}, {language}, {greeting_rule}
SHORTS_SCRIPT_V1 = """You are a YouTube Shorts scriptwriter.
Write a {seconds}-second narration in {language} for a short video on the topic below.

Topic: {topic}

Rules:
{greeting_rule}- Every sentence must carry one key point and end with a period.
- The whole narration must fit within {seconds} seconds.
- Never use numbering, bullet points, quotation marks or other special characters.
- Do not mention real company names.
- Structure: a hook that raises the problem, a body with one or two things the viewer can do right now, and a short conclusion that invites a comment.

Reply with the narration script only."""

KEYWORD_TRANSLATOR_V1 = (
    "Convert the sentence into 3-5 positive English keywords suitable for a "
    "Pexels stock video search. Soften provocative or dangerous terms. "
    "Reply with the keywords separated by commas and nothing else."
)

ALTERNATIVE_KEYWORDS_V1 = (
    "Suggest 3-5 alternative English keywords that could visually represent "
    "the sentence. More general or abstract concepts are fine. "
    "Reply with the keywords separated by commas and nothing else."
)
