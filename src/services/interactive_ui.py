"""Interactive terminal UI for shortsmith using Rich library."""

import logging
from contextlib import nullcontext
from enum import Enum
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from models.content import ContentUnit
from models.video import VideoFormat
from services.prompts import split_keywords

if TYPE_CHECKING:
    from services.ai_service import AIService
    from services.video_search_service import VideoSearchService
    from utils.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)


class ReviewCancelled(Exception):
    """The operator cancelled the run from a prompt."""

    pass


class RunMode(str, Enum):
    """How much of the pipeline runs without the operator."""

    MANUAL = "manual"
    AUTO = "auto"
    FULL_AUTO = "full-auto"

    @property
    def is_auto(self) -> bool:
        return self is not RunMode.MANUAL

    @property
    def is_full_auto(self) -> bool:
        return self is RunMode.FULL_AUTO


class ReviewAction(str, Enum):
    APPROVE = "1"
    EDIT_SENTENCE = "2"
    EDIT_KEYWORDS = "3"
    NEW_SEARCH = "4"
    SKIP = "5"
    CANCEL = "6"


REVIEW_LABELS = {
    ReviewAction.APPROVE: "Approve",
    ReviewAction.EDIT_SENTENCE: "Edit sentence",
    ReviewAction.EDIT_KEYWORDS: "Edit keywords",
    ReviewAction.NEW_SEARCH: "Search for another video",
    ReviewAction.SKIP: "Skip this sentence",
    ReviewAction.CANCEL: "Cancel",
}


class InteractiveUI:
    """Rich-based interactive terminal interface for shortsmith."""

    def __init__(
        self,
        console: Optional[Console] = None,
        shutdown: Optional["ShutdownCoordinator"] = None,
    ):
        self.console = console or Console()
        self.shutdown = shutdown

    def _guard(self):
        return self.shutdown.blocking_prompt() if self.shutdown else nullcontext()

    def _ask(self, prompt: str, **kwargs) -> str:
        with self._guard():
            return Prompt.ask(prompt, console=self.console, **kwargs)

    def _confirm(self, prompt: str, default: bool = True) -> bool:
        with self._guard():
            return Confirm.ask(prompt, default=default, console=self.console)

    def display_welcome(self) -> None:
        """Display welcome banner."""
        self.console.print(
            Panel(
                "[bold]shortsmith[/bold]\nTopic in, narrated short out",
                style="bold blue",
                border_style="blue",
            )
        )
        self.console.print()

    def _choose(self, title: str, options: list[str], default: str = "1") -> int:
        """Show numbered options plus [q] quit and return the chosen index.

        Raises:
            ReviewCancelled: If the operator quits
        """
        self.console.print(f"[bold]{title}[/bold]")
        for i, option in enumerate(options, 1):
            self.console.print(f"  [{i}] {option}")
        self.console.print("  [q] Quit\n")

        choice = self._ask(
            "Choose",
            choices=[str(i) for i in range(1, len(options) + 1)] + ["q"],
            default=default,
            show_choices=False,
        )
        if choice == "q":
            raise ReviewCancelled("Cancelled at selection prompt")
        return int(choice) - 1

    def select_video_format(self, formats: dict[str, VideoFormat]) -> VideoFormat:
        """Ask for the output format."""
        names = list(formats)
        labels = [
            f"{name} ({fmt.width}x{fmt.height}, {fmt.orientation})"
            for name, fmt in formats.items()
        ]
        selected = formats[names[self._choose("Video format", labels)]]
        self.console.print(f"  [green]✓[/green] {selected.name}\n")
        return selected

    def select_mode(self) -> RunMode:
        """Ask for the run mode."""
        modes = list(RunMode)
        labels = [
            "Manual (review every sentence)",
            "Auto (approve all found footage)",
            "Full auto (every suggested topic, no prompts)",
        ]
        mode = modes[self._choose("Run mode", labels)]
        self.console.print(f"  [green]✓[/green] {mode.value}\n")
        return mode

    async def get_topics(self, ai_service: "AIService") -> list[str]:
        """Get topics from keyword suggestions or direct input.

        Raises:
            ReviewCancelled: If the operator quits or enters nothing
        """
        index = self._choose("Topic input", ["Suggest topics from a keyword", "Enter a topic"])
        if index == 0:
            keyword = self._ask("Keyword").strip()
            if not keyword:
                raise ReviewCancelled("No keyword entered")
            topics = await ai_service.get_topic_suggestions(keyword)
            self.display_topics(topics)
            return topics

        topic = self._ask("Topic").strip()
        if not topic:
            raise ReviewCancelled("No topic entered")
        return [topic]

    def display_topics(self, topics: list[str]) -> None:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("#", style="cyan")
        table.add_column("Topic", style="white")
        for i, topic in enumerate(topics, 1):
            table.add_row(str(i), topic)
        self.console.print(Panel(table, title="[bold]Suggested topics[/bold]", border_style="green"))

    def select_topic(self, topics: list[str]) -> list[str]:
        """Narrow a topic list down to one topic."""
        if len(topics) <= 1:
            return topics
        return [topics[self._choose("Topic", topics)]]

    def display_unit(self, unit: ContentUnit, position: int, total: int) -> None:
        info = Table(show_header=False, box=None, padding=(0, 2))
        info.add_column("Field", style="cyan")
        info.add_column("Value", style="white")
        info.add_row("Narration", unit.sentence)
        info.add_row("Keywords", ", ".join(unit.keywords))
        if unit.video_preview:
            info.add_row("Video", unit.video_preview.video_url)
            info.add_row("Page", str(unit.video_preview.current_page))
        self.console.print(
            Panel(info, title=f"[bold]Sentence {position}/{total}[/bold]", border_style="blue")
        )

    async def review_content(
        self,
        plan: list[ContentUnit],
        ai_service: "AIService",
        search_service: "VideoSearchService",
        video_format: VideoFormat,
    ) -> list[ContentUnit]:
        """Walk the operator through every content unit.

        Edits re-run keyword translation and/or the video search, then the
        same unit is shown again.

        Returns:
            Approved units in plan order (possibly empty)

        Raises:
            ReviewCancelled: On cancel, on declining to continue after an
                error, or on declining the final confirmation
        """
        self.console.print("\n[bold cyan]Content review[/bold cyan]\n")
        approved: list[ContentUnit] = []
        i = 0
        while i < len(plan):
            unit = plan[i]
            self.display_unit(unit, i + 1, len(plan))
            action = ReviewAction(
                self._ask(
                    "  " + "  ".join(f"[{a.value}] {REVIEW_LABELS[a]}" for a in ReviewAction),
                    choices=[a.value for a in ReviewAction],
                    default=ReviewAction.APPROVE.value,
                    show_choices=False,
                )
            )

            if action is ReviewAction.CANCEL:
                raise ReviewCancelled("Review cancelled by user")
            if action is ReviewAction.APPROVE:
                approved.append(unit)
                self.console.print("  [green]✓ approved[/green]\n")
                i += 1
                continue
            if action is ReviewAction.SKIP:
                self.console.print("  [yellow]skipped[/yellow]\n")
                i += 1
                continue

            try:
                await self._apply_edit(action, unit, ai_service, search_service, video_format)
            except ReviewCancelled:
                raise
            except Exception as e:
                logger.warning(f"Review action failed for sentence {i + 1}: {e}")
                self.display_error(str(e))
                if not self._confirm("Continue reviewing?"):
                    raise ReviewCancelled("Review aborted after error") from e

        if approved:
            self.display_summary(approved)
            if not self._confirm("[bold]Create the video with this content?[/bold]"):
                raise ReviewCancelled("Cancelled at final confirmation")
        return approved

    async def _apply_edit(
        self,
        action: ReviewAction,
        unit: ContentUnit,
        ai_service: "AIService",
        search_service: "VideoSearchService",
        video_format: VideoFormat,
    ) -> None:
        if action is ReviewAction.EDIT_SENTENCE:
            sentence = self._ask("New sentence").strip()
            if not sentence:
                return
            unit.sentence = sentence
            unit.keywords = await ai_service.translate_to_keywords(sentence)
            unit.video_preview = await search_service.search_video_preview(
                unit.keywords, 1, video_format
            )
        elif action is ReviewAction.EDIT_KEYWORDS:
            keywords = split_keywords(
                self._ask("New keywords (comma separated)")
            )
            if not keywords:
                return
            unit.keywords = keywords
            unit.video_preview = await search_service.search_video_preview(
                keywords, 1, video_format
            )
        elif action is ReviewAction.NEW_SEARCH:
            page = unit.video_preview.current_page + 1 if unit.video_preview else 1
            unit.video_preview = await search_service.search_video_preview(
                unit.keywords, page, video_format
            )

    def display_summary(self, units: list[ContentUnit]) -> None:
        table = Table(show_header=True, box=None, padding=(0, 2))
        table.add_column("#", style="cyan", no_wrap=True)
        table.add_column("Narration", style="white")
        for i, unit in enumerate(units, 1):
            table.add_row(str(i), unit.sentence)
        self.console.print(Panel(table, title="[bold]Final content[/bold]", border_style="green"))
        self.console.print()

    def display_processing_status(self, message: str, style: str = "yellow") -> None:
        """Show processing status update.

        Args:
            message: Status message to display
            style: Rich style for the message
        """
        self.console.print(f"[{style}]⠿ {message}[/{style}]")

    def display_error(self, message: str) -> None:
        """Display error message."""
        self.console.print(f"\n[bold red]Error:[/bold red] {message}\n")

    def display_success(self, message: str) -> None:
        """Display success message."""
        self.console.print(f"\n[bold green]✓[/bold green] {message}\n")
