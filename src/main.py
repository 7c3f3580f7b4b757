"""Main application entry point for shortsmith."""

import argparse
import asyncio
import logging
import sys
from typing import Dict, Optional

from tqdm import tqdm

from services.interactive_ui import InteractiveUI, ReviewCancelled, RunMode
from shorts_processor import ShortsProcessor
from utils.config import (
    VIDEO_FORMATS,
    ConfigurationError,
    load_config,
    require_valid_config,
)
from utils.logging import setup_logging
from utils.shutdown import ShutdownCoordinator
from utils.task_runner import BatchProgress

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


class ProgressBarCallback:
    """Progress bars for the concurrent pipeline stages, one per batch."""

    def __init__(self):
        self.progress_bars: Dict[str, tqdm] = {}

    def for_stage(self, name: str):
        """Return a BatchProgress callback that drives the bar for a stage."""

        def update(progress: BatchProgress) -> None:
            bar = self.progress_bars.get(name)
            if bar is None:
                bar = tqdm(
                    total=progress.total,
                    desc=f"  {name.title()}",
                    unit="units",
                    position=len(self.progress_bars),
                    leave=True,
                )
                self.progress_bars[name] = bar
            bar.n = progress.finished
            bar.set_postfix_str(
                f"running={progress.in_flight} failed={progress.failed} retries={progress.retries}"
            )
            if progress.finished == progress.total:
                bar.set_description(f"  {name.title()} ✓")
            bar.refresh()

        return update

    def close(self):
        """Close all progress bars."""
        for bar in self.progress_bars.values():
            bar.close()
        self.progress_bars.clear()


class ShortsmithApp:
    """Main application class for shortsmith."""

    def __init__(
        self,
        args: argparse.Namespace,
        config: Optional[dict] = None,
        ui: Optional[InteractiveUI] = None,
        processor: Optional[ShortsProcessor] = None,
    ):
        self.args = args
        self.config = config if config is not None else load_config()
        self.coordinator = ShutdownCoordinator()
        self.ui = ui or InteractiveUI(shutdown=self.coordinator)
        self.processor = processor
        self.progress = ProgressBarCallback()

    async def run(self) -> int:
        """Run the whole session and return the process exit code."""
        self.coordinator.install_signal_handlers(asyncio.get_running_loop())
        self.coordinator.register("progress bars", self.progress.close)
        try:
            require_valid_config(self.config)
            if self.processor is None:
                self.processor = ShortsProcessor(
                    self.config, progress_factory=self.progress.for_stage
                )
            self.coordinator.register("temp files", self.processor.temp_files.cleanup)
            self.coordinator.register("http clients", self.processor.close)

            self.ui.display_welcome()
            self.processor.temp_files.init_temp_dir()
            await self._run_session()
            return EXIT_OK

        except ReviewCancelled as e:
            logger.info(f"Cancelled by user: {e}")
            self.ui.display_processing_status("Cancelled by user")
            return EXIT_OK
        except asyncio.CancelledError:
            if not self.coordinator.interrupted:
                raise
            self.ui.display_processing_status("Interrupted, cleaning up temporary files")
            return EXIT_OK
        except KeyboardInterrupt:
            # Ctrl-C while a terminal prompt was blocking the loop
            self.coordinator.interrupted = True
            self.ui.display_processing_status("Interrupted, cleaning up temporary files")
            return EXIT_OK
        except ConfigurationError as e:
            logger.error(str(e))
            self.ui.display_error(str(e))
            return EXIT_FAILURE
        except Exception as e:
            logger.error(f"Unexpected error: {e}", exc_info=True)
            self.ui.display_error(f"Processing failed: {e}")
            return EXIT_FAILURE
        finally:
            await self.coordinator.run_cleanup()

    async def _run_session(self) -> None:
        video_format = (
            VIDEO_FORMATS[self.args.format]
            if self.args.format
            else self.ui.select_video_format(VIDEO_FORMATS)
        )
        mode = RunMode(self.args.mode) if self.args.mode else self.ui.select_mode()

        if self.args.topic:
            topics = [self.args.topic]
        elif self.args.keyword:
            topics = await self.processor.ai_service.get_topic_suggestions(self.args.keyword)
            self.ui.display_topics(topics)
        else:
            topics = await self.ui.get_topics(self.processor.ai_service)

        if not topics:
            self.ui.display_error("No topics to process")
            return
        if not mode.is_full_auto:
            topics = self.ui.select_topic(topics)

        for topic in topics:
            try:
                final_path = await self.processor.process_topic(
                    topic, video_format, mode, self.ui
                )
            except ReviewCancelled:
                raise
            except Exception as e:
                logger.error(f"Topic \"{topic}\" failed: {e}")
                self.ui.display_error(f"\"{topic}\" failed: {e}")
                if not mode.is_full_auto:
                    raise
                continue

            if final_path:
                self.ui.display_success(f"\"{topic}\" done: {final_path}")
            else:
                self.ui.display_processing_status(f"\"{topic}\" produced no video")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="shortsmith: turn a topic into a narrated short video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  shortsmith                                    # Prompt for everything
  shortsmith --format shorts --mode auto --topic "Password hygiene"
  shortsmith --mode full-auto --keyword "cyber security"
        """,
    )
    parser.add_argument(
        "--format",
        choices=sorted(VIDEO_FORMATS),
        help="Output format (prompted if omitted)",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in RunMode],
        help="Run mode (prompted if omitted)",
    )
    topic_group = parser.add_mutually_exclusive_group()
    topic_group.add_argument("--topic", help="Make a video for this topic")
    topic_group.add_argument("--keyword", help="Get topic suggestions for this keyword")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = load_config()
    setup_logging(
        args.log_level or config.get("log_level", "INFO"),
        json_output=args.json_logs or config.get("json_logs", False),
    )

    app = ShortsmithApp(args, config)
    try:
        exit_code = asyncio.run(app.run())
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        exit_code = EXIT_OK
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
