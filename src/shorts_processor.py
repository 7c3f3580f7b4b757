"""Main shortsmith class for orchestrating one topic from script to finished video.

Stages:
1. generate_content_plan  - script, sentence split, keywords and footage per sentence
2. review                 - auto approval or interactive review
3. generate_media_files   - footage download + narration per unit (concurrent)
4. sync_and_edit_media    - one synchronized clip per unit (concurrent)
5. create_video           - concatenation, logo outro, burned-in subtitles
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from models.content import ContentUnit, EditedClips
from models.video import VideoFormat, VideoPreview
from services.ai_service import AIService
from services.interactive_ui import InteractiveUI, RunMode
from services.tts_service import TTSService
from services.used_video_registry import UsedResourceRegistry
from services.video_downloader import VideoDownloader
from services.video_search_service import VideoSearchService
from services.video_sources import PexelsVideoSource
from utils.cache import ResponseCache
from utils.config import OPENAI_SPEECH_URL
from utils.logging import clear_job_context, set_job_context
from utils.retry import RateLimitedExecutor
from utils.task_runner import BatchProgress, ConcurrentPipelineRunner
from utils.temp_files import TempFileManager
from video_editing import (
    ClipEditor,
    FFmpegRunner,
    TimingSynchronizer,
    VideoComposer,
)

logger = logging.getLogger(__name__)

ProgressFactory = Callable[[str], Callable[[BatchProgress], None]]


class ShortsProcessor:
    """Central orchestrator for shortsmith.

    Collaborators are built from config unless passed in, which is how the
    tests swap in fakes for the remote services and ffmpeg.
    """

    def __init__(
        self,
        config: dict,
        progress_factory: Optional[ProgressFactory] = None,
        temp_files: Optional[TempFileManager] = None,
        ai_service: Optional[AIService] = None,
        search_service: Optional[VideoSearchService] = None,
        tts_service: Optional[TTSService] = None,
        downloader: Optional[VideoDownloader] = None,
        clip_editor: Optional[ClipEditor] = None,
        composer: Optional[VideoComposer] = None,
    ):
        self.config = config
        self.progress_factory = progress_factory

        # One retry policy and one cache per remote concern for the whole run
        self.executor = RateLimitedExecutor(
            max_retries=config.get("api_max_retries", 3),
            base_delay=config.get("api_base_delay", 1.0),
            max_delay=config.get("api_max_delay", 10.0),
        )
        self.keyword_cache = ResponseCache("keywords")
        self.search_cache = ResponseCache("video_search")
        self.registry = UsedResourceRegistry(config.get("used_videos_file", "used_videos.json"))
        self.temp_files = temp_files or TempFileManager(config.get("temp_dir", "temp"))
        remote_timeout = config.get("remote_timeout_seconds", 30.0)

        self.ai_service = ai_service or AIService(
            api_key=config.get("gemini_api_key"),
            model_name=config.get("gemini_model", "gemini-2.5-flash"),
            executor=self.executor,
            keyword_cache=self.keyword_cache,
            timeout=remote_timeout,
            script_seconds=config.get("script_seconds", 40),
            script_language=config.get("script_language", "English"),
            channel_greeting=config.get("channel_greeting"),
        )

        if search_service is None:
            source = PexelsVideoSource(
                api_key=config.get("pexels_api_key", ""),
                per_page=config.get("search_per_page", 15),
                timeout=remote_timeout,
                min_duration=config.get("min_clip_duration", 3),
                max_duration=config.get("max_clip_duration", 15),
            )
            search_service = VideoSearchService(
                source=source,
                registry=self.registry,
                executor=self.executor,
                cache=self.search_cache,
                fallback_keywords=config.get("fallback_keywords"),
            )
        self.search_service = search_service

        self.tts_service = tts_service or TTSService(
            api_key=config.get("tts_api_key", ""),
            temp_files=self.temp_files,
            url=config.get("tts_url", OPENAI_SPEECH_URL),
            model=config.get("tts_model", "tts-1"),
            voice=config.get("tts_voice", "nova"),
            timeout=remote_timeout,
            executor=self.executor,
        )
        self.downloader = downloader or VideoDownloader(
            self.temp_files, timeout=config.get("download_timeout_seconds", 60.0)
        )

        ffmpeg = FFmpegRunner(probe_timeout=config.get("probe_timeout_seconds", 30.0))
        timing = TimingSynchronizer()
        self.clip_editor = clip_editor or ClipEditor(ffmpeg, self.temp_files, timing)
        self.composer = composer or VideoComposer(
            ffmpeg,
            self.temp_files,
            output_dir=config.get("output_dir", "output"),
            logo_video_path=config.get("logo_video_path"),
            timing=timing,
        )

    def _runner(self, name: str) -> ConcurrentPipelineRunner:
        callback = self.progress_factory(name) if self.progress_factory else None
        return ConcurrentPipelineRunner(
            concurrency=self.config.get("max_concurrent_tasks", 4),
            retries_per_task=self.config.get("task_retries", 2),
            progress_callback=callback,
            name=name,
        )

    async def find_video_preview(
        self, sentence: str, keywords: list[str], video_format: VideoFormat
    ) -> tuple[list[str], Optional[VideoPreview]]:
        """Search footage for a sentence, falling back to alternative keywords once.

        Returns:
            The keywords that produced the hit and the preview, or (keywords, None)
        """
        try:
            return keywords, await self.search_service.search_video_preview(
                keywords, 1, video_format
            )
        except Exception as e:
            logger.warning(f"  - Video search failed: {e}")

        try:
            logger.info("  - Retrying with alternative keywords...")
            alt_keywords = await self.ai_service.get_alternative_keywords(sentence)
            logger.info(f"  - Alternative keywords: {', '.join(alt_keywords)}")
            return alt_keywords, await self.search_service.search_video_preview(
                alt_keywords, 1, video_format
            )
        except Exception as e:
            logger.warning(f"  - Alternative keyword search failed too: {e}")
            return keywords, None

    async def generate_content_plan(
        self, topic: str, video_format: VideoFormat
    ) -> list[ContentUnit]:
        """Write the script and pick footage for every sentence.

        Sentences without usable footage are left out of the plan.
        """
        sentences = await self.ai_service.generate_sentences(topic)

        plan: list[ContentUnit] = []
        for sentence in sentences:
            logger.info(f"Processing sentence: \"{sentence}\"")
            keywords = await self.ai_service.translate_to_keywords(sentence)
            logger.info(f"  - Keywords: {', '.join(keywords)}")

            keywords, preview = await self.find_video_preview(sentence, keywords, video_format)
            if preview is None:
                logger.warning(f"No video found for \"{sentence}\", skipping")
                continue

            logger.info(f"  - Found video: ID {preview.video_id}")
            plan.append(ContentUnit(sentence=sentence, keywords=keywords, video_preview=preview))

        logger.info(f"Content plan: {len(plan)}/{len(sentences)} sentences have footage")
        return plan

    def auto_review_content(self, plan: list[ContentUnit]) -> list[ContentUnit]:
        """Approve every unit that has a footage URL."""
        reviewed = [u for u in plan if u.video_preview and u.video_preview.video_url]
        logger.info(f"Auto review: {len(reviewed)} of {len(plan)} approved")
        return reviewed

    async def generate_media_files(self, plan: list[ContentUnit]) -> list[ContentUnit]:
        """Download footage and synthesize narration for every unit.

        Returns:
            Units whose media task succeeded, in plan order
        """
        logger.info("Generating media files...")

        async def build_media(index: int, unit: ContentUnit) -> ContentUnit:
            video_path, audio_path = await asyncio.gather(
                self.downloader.download_video(unit.video_preview.video_url, index),
                self.tts_service.generate_audio(unit.sentence, index),
            )
            unit.video_path = video_path
            unit.audio_path = audio_path
            return unit

        batch = await self._runner("media").run(
            [lambda i=i, u=u: build_media(i, u) for i, u in enumerate(plan)],
            titles=[f"[{i + 1}/{len(plan)}] media" for i in range(len(plan))],
        )
        return [u for u in batch.results if u.has_media]

    async def sync_and_edit_media(
        self, plan: list[ContentUnit], video_format: VideoFormat
    ) -> EditedClips:
        """Build one synchronized clip per unit.

        Returns:
            Successful clips with their durations and sentences, in plan order
        """
        logger.info("Syncing and editing media...")

        async def edit(unit: ContentUnit):
            result = await self.clip_editor.create_clip(
                unit.video_path,
                unit.audio_path,
                unit.sentence,
                video_format,
                unit.video_preview.attribution if unit.video_preview else None,
            )
            unit.clip_path = result.clip
            unit.duration = result.duration
            return result

        batch = await self._runner("clips").run(
            [lambda u=u: edit(u) for u in plan],
            titles=[f"[{i + 1}/{len(plan)}] clip" for i in range(len(plan))],
        )
        edited = EditedClips.from_results(batch.results)
        logger.info(f"Edited clips: {len(edited)}")
        return edited

    async def create_video(
        self, topic: str, edited: EditedClips, video_format: VideoFormat
    ) -> Path:
        """Assemble the finished short."""
        return await self.composer.compose(topic, edited, video_format)

    async def process_topic(
        self,
        topic: str,
        video_format: VideoFormat,
        mode: RunMode = RunMode.AUTO,
        ui: Optional[InteractiveUI] = None,
    ) -> Optional[Path]:
        """Run every stage for one topic.

        Returns:
            Path to the finished video, or None if no content survived a stage

        Raises:
            ReviewCancelled: If the operator cancels during review
        """
        set_job_context(topic)
        try:
            logger.info(f"=== Processing topic: \"{topic}\" ===")
            plan = await self.generate_content_plan(topic, video_format)
            if not plan:
                logger.warning("No content to turn into a video")
                return None

            if mode.is_auto or ui is None:
                reviewed = self.auto_review_content(plan)
            else:
                reviewed = await ui.review_content(
                    plan, self.ai_service, self.search_service, video_format
                )
            if not reviewed:
                logger.warning("No content left after review")
                return None

            with_media = await self.generate_media_files(reviewed)
            if not with_media:
                logger.warning("No media files could be generated")
                return None

            edited = await self.sync_and_edit_media(with_media, video_format)
            if not len(edited):
                logger.warning("No clips could be edited")
                return None

            final_path = await self.create_video(topic, edited, video_format)
            logger.info(
                f"Video created for \"{topic}\": {final_path} "
                f"({len(edited)} clips, {edited.total_duration:.2f}s)"
            )
            return final_path
        finally:
            self.keyword_cache.log_stats()
            self.search_cache.log_stats()
            clear_job_context()

    async def close(self) -> None:
        """Release HTTP clients."""
        await self.tts_service.close()
