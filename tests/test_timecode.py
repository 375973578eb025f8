"""Tests for HH:MM:SS:FF timecode rendering and frame-rate resolution."""

from __future__ import annotations

import logging

import pytest

from stt_pipeline.core.timecode import format_timecode, resolve_fps


def _parse(timecode: str):
    return tuple(int(part) for part in timecode.split(":"))


# ---------------------------------------------------------------------------
# format_timecode
# ---------------------------------------------------------------------------


class TestFormatTimecode:
    def test_ninety_one_minutes_at_100_fps(self):
        assert format_timecode(91 * 60, 100) == "01:31:00:00"

    def test_thirty_one_minutes_at_100_fps(self):
        assert format_timecode(31 * 60, 100) == "00:31:00:00"

    def test_thirty_one_minutes_at_25_fps(self):
        assert format_timecode(31 * 60, 25) == "00:31:00:00"

    def test_zero(self):
        assert format_timecode(0, 25) == "00:00:00:00"

    def test_frames_within_second(self):
        # 1.5s at 25 fps = 37 frames total, 12 into the second
        assert format_timecode(1.5, 25) == "00:00:01:12"

    def test_last_frame_of_second(self):
        assert format_timecode(0.999, 25) == "00:00:00:24"

    def test_frame_never_reaches_fps(self):
        for ms in range(0, 3000, 7):
            frames = _parse(format_timecode(ms / 1000.0, 30))[3]
            assert 0 <= frames < 30

    def test_negative_clamped_to_zero(self):
        assert format_timecode(-4.2, 25) == "00:00:00:00"

    def test_hours_widen_past_99(self):
        assert format_timecode(100 * 3600, 25) == "100:00:00:00"

    def test_high_frame_rate_gives_three_digit_frames(self):
        assert format_timecode(0.995, 120) == "00:00:00:119"

    def test_monotonic(self):
        previous = _parse(format_timecode(0, 30))
        for ms in range(1, 5000, 3):
            current = _parse(format_timecode(ms / 1000.0, 30))
            assert current >= previous
            previous = current


# ---------------------------------------------------------------------------
# Frame-rate fallback
# ---------------------------------------------------------------------------


class TestFrameRateFallback:
    @pytest.mark.parametrize("fps", [0, -5, 1001, 100000])
    def test_invalid_fps_uses_default(self, fps):
        assert resolve_fps(fps) == 25
        assert format_timecode(1.5, fps) == format_timecode(1.5, 25)

    @pytest.mark.parametrize("fps", [1, 24, 30, 1000])
    def test_valid_fps_kept(self, fps):
        assert resolve_fps(fps) == fps

    def test_none_is_default_without_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="stt_pipeline.core.timecode"):
            assert resolve_fps(None) == 25
        assert caplog.records == []

    def test_invalid_fps_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="stt_pipeline.core.timecode"):
            resolve_fps(5000)
        assert "5000" in caplog.text

    def test_warning_can_be_suppressed(self, caplog):
        with caplog.at_level(logging.WARNING, logger="stt_pipeline.core.timecode"):
            assert resolve_fps(0, warn=False) == 25
        assert caplog.records == []

    def test_one_fps(self):
        assert format_timecode(59.9, 1) == "00:00:59:00"
