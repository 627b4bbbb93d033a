# ABOUTME: Unit tests for windowed speed, accuracy and fatigue metrics
import pytest

from keystroke_analytics.models import PeakWindow
from keystroke_analytics.windowed import (
    adjusted_wpm, burst_wpm, fatigue_indicator, peak_performance_window,
    rolling_accuracy, session_speed, wpm_by_position
)


class TestWindowedMetrics:
    """Test metrics over time and position windows."""

    @pytest.fixture
    def even_events(self, record, sixty_chars):
        """Sixty correct keystrokes, one every 100ms, each held 50ms."""
        return record(sixty_chars).closed_events()

    def test_burst_wpm(self, even_events):
        # Presses 0..5000ms inclusive: 51 correct keystrokes in 5 seconds
        assert burst_wpm(even_events) == 122

    def test_burst_wpm_is_capped(self, record):
        events = record('a' * 300, interval=5.0, dwell=2.0).closed_events()
        assert burst_wpm(events) == 300

    def test_burst_wpm_without_correct_keystrokes(self, record):
        events = record('abcdef', errors=range(6)).closed_events()
        assert burst_wpm(events) is None

    def test_burst_wpm_needs_five_events(self, record):
        assert burst_wpm(record('abcd').closed_events()) is None

    def test_wpm_by_position(self, even_events):
        # Six keystrokes over 550ms in every bucket
        assert wpm_by_position(even_events) == (131,) * 10

    def test_wpm_by_position_needs_ten_events(self, record):
        assert wpm_by_position(record('abcdefghi').closed_events()) is None

    def test_rolling_accuracy(self, record):
        events = record('abcdefghij', errors=[0, 1]).closed_events()
        assert rolling_accuracy(events) == (0, 100, 100, 100, 100)

    def test_rolling_accuracy_short_last_chunk(self, record):
        events = record('abcdefg').closed_events()
        assert rolling_accuracy(events) == (100, 100, 100, 100, 0)

    def test_peak_performance_window(self, even_events):
        peak = peak_performance_window(even_events)
        # Twelve keystrokes over 1150ms; the earliest window wins ties
        assert peak == PeakWindow(start_position=0, end_position=11, wpm=125)

    def test_peak_performance_window_too_short(self, record):
        assert peak_performance_window(record('abcd').closed_events()) is None

    def test_no_fatigue_at_even_pace(self, even_events):
        assert fatigue_indicator(even_events) == 0

    def test_fatigue_when_slowing_down(self, record, sixty_chars):
        press_times = [i * 100.0 for i in range(30)]
        press_times += [2900.0 + 200.0 * k for k in range(1, 31)]
        events = record(sixty_chars, press_times=press_times).closed_events()

        assert fatigue_indicator(events) == 50

    def test_fatigue_needs_ten_events(self, record):
        assert fatigue_indicator(record('abcdefghi').closed_events()) is None

    def test_adjusted_wpm(self, even_events):
        # 60 correct keystrokes over 5950ms
        assert adjusted_wpm(even_events, fallback_wpm=80.0) == 121

    def test_adjusted_wpm_fallback(self, record):
        single = record('a').closed_events()
        assert adjusted_wpm(single, fallback_wpm=42.0) == 42.0
        assert adjusted_wpm(single, fallback_wpm=-3.0) == 0
        assert adjusted_wpm(single) is None

    def test_session_speed(self, record, sixty_chars):
        events = record(sixty_chars, errors=range(6)).closed_events()
        wpm, raw_wpm, accuracy = session_speed(events)

        assert wpm == pytest.approx(54 / 5 / (5950 / 60000))
        assert raw_wpm == pytest.approx(60 / 5 / (5950 / 60000))
        assert accuracy == pytest.approx(90.0)

    def test_session_speed_empty(self):
        assert session_speed(()) == (None, None, None)
