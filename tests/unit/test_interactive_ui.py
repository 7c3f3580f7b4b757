"""Tests for the Rich terminal UI."""

import io
from unittest.mock import AsyncMock, Mock

import pytest
from rich.console import Console

from models.content import ContentUnit
from models.video import VideoPreview
from services.interactive_ui import InteractiveUI, ReviewCancelled, RunMode
from utils.config import VIDEO_FORMATS
from utils.shutdown import ShutdownCoordinator


def _ui() -> InteractiveUI:
    return InteractiveUI(console=Console(file=io.StringIO(), width=120))


def _answers(monkeypatch, prompts=(), confirms=()):
    """Feed scripted answers to Prompt.ask and Confirm.ask."""
    prompt_iter = iter(prompts)
    confirm_iter = iter(confirms)
    monkeypatch.setattr(
        "services.interactive_ui.Prompt.ask", lambda *a, **kw: next(prompt_iter)
    )
    monkeypatch.setattr(
        "services.interactive_ui.Confirm.ask", lambda *a, **kw: next(confirm_iter)
    )


def _unit(sentence: str, video_id: str = "1", page: int = 1) -> ContentUnit:
    return ContentUnit(
        sentence=sentence,
        keywords=["hacker", "laptop"],
        video_preview=VideoPreview(
            video_id=video_id,
            video_url=f"https://videos.pexels.com/{video_id}/hd.mp4",
            current_page=page,
        ),
    )


def _preview(video_id: str, page: int = 1) -> VideoPreview:
    return VideoPreview(
        video_id=video_id,
        video_url=f"https://videos.pexels.com/{video_id}/hd.mp4",
        current_page=page,
    )


@pytest.mark.unit
class TestSelections:
    """Tests for format, mode and topic prompts."""

    def test_run_mode_flags(self):
        assert not RunMode.MANUAL.is_auto
        assert RunMode.AUTO.is_auto and not RunMode.AUTO.is_full_auto
        assert RunMode.FULL_AUTO.is_full_auto
        assert RunMode("full-auto") is RunMode.FULL_AUTO

    def test_select_video_format(self, monkeypatch):
        _answers(monkeypatch, prompts=["2"])
        assert _ui().select_video_format(VIDEO_FORMATS).name == "landscape"

    def test_select_mode(self, monkeypatch):
        _answers(monkeypatch, prompts=["1"])
        assert _ui().select_mode() is RunMode.MANUAL

    def test_quit_raises(self, monkeypatch):
        _answers(monkeypatch, prompts=["q"])
        with pytest.raises(ReviewCancelled):
            _ui().select_mode()

    def test_select_topic(self, monkeypatch):
        _answers(monkeypatch, prompts=["3"])
        assert _ui().select_topic(["a", "b", "c"]) == ["c"]

    def test_single_topic_needs_no_prompt(self, monkeypatch):
        _answers(monkeypatch)
        assert _ui().select_topic(["only"]) == ["only"]

    def test_ctrl_c_at_prompt_marks_run_interrupted(self, monkeypatch):
        def interrupted(*args, **kwargs):
            raise KeyboardInterrupt

        monkeypatch.setattr("services.interactive_ui.Prompt.ask", interrupted)
        coordinator = ShutdownCoordinator()
        ui = InteractiveUI(console=Console(file=io.StringIO()), shutdown=coordinator)

        with pytest.raises(KeyboardInterrupt):
            ui.select_mode()

        assert coordinator.interrupted

    @pytest.mark.asyncio
    async def test_get_topics_from_keyword(self, monkeypatch):
        _answers(monkeypatch, prompts=["1", "cyber security"])
        ai = Mock()
        ai.get_topic_suggestions = AsyncMock(return_value=["Phishing", "Passwords"])

        assert await _ui().get_topics(ai) == ["Phishing", "Passwords"]
        ai.get_topic_suggestions.assert_awaited_once_with("cyber security")

    @pytest.mark.asyncio
    async def test_get_topics_direct(self, monkeypatch):
        _answers(monkeypatch, prompts=["2", "  Password hygiene "])
        assert await _ui().get_topics(Mock()) == ["Password hygiene"]

    @pytest.mark.asyncio
    async def test_get_topics_empty_input(self, monkeypatch):
        _answers(monkeypatch, prompts=["2", "   "])
        with pytest.raises(ReviewCancelled):
            await _ui().get_topics(Mock())


@pytest.mark.unit
class TestReviewContent:
    """Tests for the per-sentence review loop."""

    @pytest.mark.asyncio
    async def test_approve_and_skip(self, monkeypatch, shorts_format):
        _answers(monkeypatch, prompts=["1", "5", "1"], confirms=[True])
        plan = [_unit("A."), _unit("B."), _unit("C.")]

        approved = await _ui().review_content(plan, Mock(), Mock(), shorts_format)

        assert [u.sentence for u in approved] == ["A.", "C."]

    @pytest.mark.asyncio
    async def test_cancel(self, monkeypatch, shorts_format):
        _answers(monkeypatch, prompts=["6"])
        with pytest.raises(ReviewCancelled):
            await _ui().review_content([_unit("A.")], Mock(), Mock(), shorts_format)

    @pytest.mark.asyncio
    async def test_decline_final_confirmation(self, monkeypatch, shorts_format):
        _answers(monkeypatch, prompts=["1"], confirms=[False])
        with pytest.raises(ReviewCancelled):
            await _ui().review_content([_unit("A.")], Mock(), Mock(), shorts_format)

    @pytest.mark.asyncio
    async def test_all_skipped_returns_empty(self, monkeypatch, shorts_format):
        _answers(monkeypatch, prompts=["5", "5"])
        plan = [_unit("A."), _unit("B.")]

        assert await _ui().review_content(plan, Mock(), Mock(), shorts_format) == []

    @pytest.mark.asyncio
    async def test_edit_sentence_reshows_unit(self, monkeypatch, shorts_format):
        _answers(monkeypatch, prompts=["2", "Edited sentence.", "1"], confirms=[True])
        ai = Mock()
        ai.translate_to_keywords = AsyncMock(return_value=["edit", "keyword"])
        search = Mock()
        search.search_video_preview = AsyncMock(return_value=_preview("99"))

        [unit] = await _ui().review_content([_unit("A.")], ai, search, shorts_format)

        assert unit.sentence == "Edited sentence."
        assert unit.keywords == ["edit", "keyword"]
        assert unit.video_preview.video_id == "99"
        search.search_video_preview.assert_awaited_once_with(
            ["edit", "keyword"], 1, shorts_format
        )

    @pytest.mark.asyncio
    async def test_edit_keywords(self, monkeypatch, shorts_format):
        _answers(monkeypatch, prompts=["3", "city, night ,", "1"], confirms=[True])
        search = Mock()
        search.search_video_preview = AsyncMock(return_value=_preview("7"))

        [unit] = await _ui().review_content([_unit("A.")], Mock(), search, shorts_format)

        assert unit.keywords == ["city", "night"]
        search.search_video_preview.assert_awaited_once_with(["city", "night"], 1, shorts_format)

    @pytest.mark.asyncio
    async def test_new_search_uses_next_page(self, monkeypatch, shorts_format):
        _answers(monkeypatch, prompts=["4", "1"], confirms=[True])
        search = Mock()
        search.search_video_preview = AsyncMock(return_value=_preview("8", page=3))

        [unit] = await _ui().review_content(
            [_unit("A.", page=2)], Mock(), search, shorts_format
        )

        search.search_video_preview.assert_awaited_once_with(
            ["hacker", "laptop"], 3, shorts_format
        )
        assert unit.video_preview.current_page == 3

    @pytest.mark.asyncio
    async def test_error_then_continue(self, monkeypatch, shorts_format):
        _answers(monkeypatch, prompts=["4", "1"], confirms=[True, True])
        search = Mock()
        search.search_video_preview = AsyncMock(side_effect=RuntimeError("no video"))

        [unit] = await _ui().review_content([_unit("A.")], Mock(), search, shorts_format)

        assert unit.video_preview.video_id == "1"

    @pytest.mark.asyncio
    async def test_error_then_abort(self, monkeypatch, shorts_format):
        _answers(monkeypatch, prompts=["4"], confirms=[False])
        search = Mock()
        search.search_video_preview = AsyncMock(side_effect=RuntimeError("no video"))

        with pytest.raises(ReviewCancelled):
            await _ui().review_content([_unit("A.")], Mock(), search, shorts_format)
