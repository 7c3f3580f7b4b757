"""AI service for topic ideas, narration scripts and search keywords using Google GenAI.

All calls go through a RateLimitedExecutor (retry on 429 only) and a
per-call time budget. Keyword translation is memoized per sentence in a
ResponseCache injected by the caller.
"""

import asyncio
import logging
from typing import Optional

from google.genai import Client
from google.genai import types

from services.prompts import (
    ALTERNATIVE_KEYWORDS_V1,
    KEYWORD_TRANSLATOR_V1,
    SHORTS_SCRIPT_V1,
    TOPIC_SUGGESTER_V1,
    split_keywords,
    split_lines,
    split_sentences,
)
from utils.cache import ResponseCache, normalize_key
from utils.retry import RateLimitedExecutor, RemoteTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class EmptyResponseError(Exception):
    """The model returned no usable text."""

    pass


class AIService:
    """Service for text generation with Gemini."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash",
        executor: Optional[RateLimitedExecutor] = None,
        keyword_cache: Optional[ResponseCache] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        script_seconds: int = 40,
        script_language: str = "English",
        channel_greeting: Optional[str] = None,
        client: Optional[Client] = None,
    ):
        """Initialize Google GenAI client.

        Args:
            api_key: Google GenAI API key
            model_name: Gemini model to use
            executor: Retry policy for remote calls (default: 3 attempts, 1s base)
            keyword_cache: Cache for sentence -> keywords translations
            timeout: Budget per remote call in seconds
            script_seconds: Target narration length
            script_language: Narration language
            channel_greeting: Optional sentence every script must open with
            client: Pre-built client (tests)
        """
        self.model_name = model_name
        self.client = client or Client(api_key=api_key)
        self.executor = executor or RateLimitedExecutor()
        self.keyword_cache = keyword_cache or ResponseCache("keywords")
        self.timeout = timeout
        self.script_seconds = script_seconds
        self.script_language = script_language
        self.channel_greeting = channel_greeting

        logger.info(f"Initialized AI service with model: {model_name}")

    async def generate(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        """Send one role-tagged prompt and return the reply text.

        Raises:
            RemoteTimeoutError: If the call exceeds the time budget
            EmptyResponseError: If the reply has no text
        """

        async def call() -> str:
            try:
                response = await asyncio.wait_for(
                    self.client.aio.models.generate_content(
                        model=self.model_name,
                        contents=[
                            types.Content(role="user", parts=[types.Part(text=prompt)])
                        ],
                        config=types.GenerateContentConfig(
                            system_instruction=system_instruction,
                        ),
                    ),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError as e:
                raise RemoteTimeoutError(
                    f"Gemini request timed out after {self.timeout:.0f}s"
                ) from e

            if not response.text or not response.text.strip():
                raise EmptyResponseError("AI response is empty")
            return response.text.strip()

        return await self.executor.execute_with_retry(call)

    async def get_topic_suggestions(self, keyword: str) -> list[str]:
        """Suggest video topics for a keyword, one per returned item."""
        text = await self.generate(TOPIC_SUGGESTER_V1.format(keyword=keyword.strip()))
        topics = split_lines(text)
        logger.info(f"Got {len(topics)} topic suggestions for '{keyword}'")
        return topics

    async def generate_script(self, topic: str) -> str:
        """Write the narration script for a topic."""
        if self.channel_greeting:
            greeting_rule = f"- Open with exactly this greeting: {self.channel_greeting}\n"
        else:
            greeting_rule = ""
        prompt = SHORTS_SCRIPT_V1.format(
            topic=topic,
            seconds=self.script_seconds,
            language=self.script_language,
            greeting_rule=greeting_rule,
        )
        return await self.generate(prompt)

    async def generate_sentences(self, topic: str) -> list[str]:
        """Write the narration script and split it into sentences."""
        script = await self.generate_script(topic)
        sentences = split_sentences(script)
        logger.info(f"Script for '{topic}' has {len(sentences)} sentences")
        return sentences

    async def translate_to_keywords(self, sentence: str) -> list[str]:
        """Translate a narration sentence into stock search keywords (cached)."""

        async def compute() -> list[str]:
            text = await self.generate(sentence, system_instruction=KEYWORD_TRANSLATOR_V1)
            return split_keywords(text)

        return await self.keyword_cache.get_or_compute(normalize_key(sentence), compute)

    async def get_alternative_keywords(self, sentence: str) -> list[str]:
        """Suggest broader keywords for a sentence whose search came up empty."""
        text = await self.generate(sentence, system_instruction=ALTERNATIVE_KEYWORDS_V1)
        return split_keywords(text)
