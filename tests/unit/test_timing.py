"""Tests for timing reconciliation."""

import pytest

from video_editing.timing import TimingSynchronizer, format_timestamp


@pytest.mark.unit
class TestTimingSynchronizer:
    """Tests for TimingSynchronizer."""

    def test_target_duration_adds_buffer(self):
        timing = TimingSynchronizer()
        assert timing.compute_target_duration(12.3) == 12.8
        assert timing.compute_target_duration(0) == 0.5

    def test_target_duration_rounds_up_to_hundredths(self):
        assert TimingSynchronizer().compute_target_duration(3.001) == 3.51

    def test_speed_factor(self):
        assert TimingSynchronizer.compute_speed_factor(10.0, 5.0) == 2.0
        assert TimingSynchronizer.compute_speed_factor(4.0, 8.0) == 0.5

    def test_speed_factor_rejects_non_positive(self):
        with pytest.raises(ValueError):
            TimingSynchronizer.compute_speed_factor(10.0, 0)
        with pytest.raises(ValueError):
            TimingSynchronizer.compute_speed_factor(0, 5.0)

    def test_padding(self):
        assert TimingSynchronizer.compute_padding(5.5, 5.0) == pytest.approx(0.5)
        assert TimingSynchronizer.compute_padding(4.0, 5.0) == 0.0

    def test_plan(self):
        plan = TimingSynchronizer().plan(audio_duration=4.5, original_video_duration=10.0)

        assert plan.target_duration == 5.0
        assert plan.speed_factor == 2.0
        assert plan.padding_duration == pytest.approx(0.5)
        assert plan.pts_multiplier == 0.5

    def test_subtitle_timeline_is_contiguous(self):
        timeline = TimingSynchronizer.build_subtitle_timeline(
            ["First.", "Second.", "Third."], [2.5, 3.0, 1.25]
        )

        assert len(timeline) == 3
        entries = list(timeline)
        assert entries[0].start == 0.0
        for prev, nxt in zip(entries, entries[1:]):
            assert nxt.start == prev.end
        assert timeline.total_duration == pytest.approx(6.75)
        assert entries[1].duration == 3.0

    def test_subtitle_timeline_keeps_text_verbatim(self):
        timeline = TimingSynchronizer.build_subtitle_timeline(["Don't: 100%"], [1.0])
        assert timeline.entries[0].text == "Don't: 100%"

    def test_subtitle_timeline_length_mismatch(self):
        with pytest.raises(ValueError):
            TimingSynchronizer.build_subtitle_timeline(["a", "b"], [1.0])

    def test_subtitle_timeline_negative_duration(self):
        with pytest.raises(ValueError):
            TimingSynchronizer.build_subtitle_timeline(["a"], [-1.0])

    def test_verify_concatenation(self):
        timing = TimingSynchronizer()

        ok = timing.verify_concatenation(10.4, 10.0)
        off = timing.verify_concatenation(12.0, 10.0)

        assert ok.ok
        assert not off.ok
        assert off.delta == 2.0
        assert timing.verify_concatenation(10.4, 10.0, tolerance=0.1).ok is False


@pytest.mark.unit
def test_format_timestamp():
    assert format_timestamp(0) == "0:00:00.00"
    assert format_timestamp(2.5) == "0:00:02.50"
    assert format_timestamp(61.239) == "0:01:01.23"
    assert format_timestamp(3725.5) == "1:02:05.50"
