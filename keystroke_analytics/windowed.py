# ABOUTME: Time- and position-windowed speed, accuracy and fatigue metrics
import math
from typing import List, Optional, Sequence, Tuple

from .models import KeystrokeEvent, PeakWindow
from .utils import MS_PER_MINUTE, calculate_wpm, round_half_up

BURST_WINDOW_MS = 5000
WPM_CAP = 300
MIN_WINDOW_EVENTS = 5
MIN_POSITION_EVENTS = 10
MIN_FATIGUE_EVENTS = 10
MIN_HALF_EVENTS = 5


def _correct_count(events: Sequence[KeystrokeEvent]) -> int:
    return sum(1 for e in events if e.is_correct)


def _span_ms(events: Sequence[KeystrokeEvent]) -> float:
    """First press to last release."""
    return events[-1].release_time - events[0].press_time


def _chunks(events: Sequence[KeystrokeEvent], count: int) -> List[Sequence[KeystrokeEvent]]:
    """Split into `count` contiguous chunks of ceil(n / count) events."""
    size = math.ceil(len(events) / count)
    return [events[i * size:(i + 1) * size] for i in range(count)]


def burst_wpm(
    events: Sequence[KeystrokeEvent],
    window_ms: float = BURST_WINDOW_MS,
    cap: int = WPM_CAP,
    min_events: int = MIN_WINDOW_EVENTS,
) -> Optional[int]:
    """Highest WPM over any window starting at an event's press time."""
    if len(events) < min_events:
        return None

    window_minutes = window_ms / MS_PER_MINUTE
    best = 0
    for i, start_event in enumerate(events):
        window_end = start_event.press_time + window_ms
        chars_in_window = 0
        for event in events[i:]:
            if event.press_time > window_end:
                break
            if event.is_correct:
                chars_in_window += 1
        best = max(best, round_half_up((chars_in_window / 5) / window_minutes))

    return min(best, cap) if best > 0 else None


def wpm_by_position(
    events: Sequence[KeystrokeEvent],
    buckets: int = 10,
    cap: int = WPM_CAP,
    min_events: int = MIN_POSITION_EVENTS,
) -> Optional[Tuple[int, ...]]:
    if len(events) < min_events:
        return None

    result = []
    for chunk in _chunks(events, buckets):
        if len(chunk) < 2:
            result.append(0)
            continue
        wpm = calculate_wpm(_correct_count(chunk), _span_ms(chunk))
        result.append(min(round_half_up(wpm), cap) if wpm is not None else 0)
    return tuple(result)


def rolling_accuracy(
    events: Sequence[KeystrokeEvent],
    buckets: int = 5,
    min_events: int = MIN_WINDOW_EVENTS,
) -> Optional[Tuple[int, ...]]:
    """Accuracy percentage per contiguous chunk, for trend display."""
    if len(events) < min_events:
        return None

    result = []
    for chunk in _chunks(events, buckets):
        if not chunk:
            result.append(0)
            continue
        result.append(round_half_up(_correct_count(chunk) / len(chunk) * 100))
    return tuple(result)


def peak_performance_window(
    events: Sequence[KeystrokeEvent],
    fraction: float = 0.2,
    cap: int = WPM_CAP,
    min_events: int = MIN_WINDOW_EVENTS,
) -> Optional[PeakWindow]:
    """Best consecutive stretch covering `fraction` of the session."""
    if len(events) < min_events:
        return None

    size = math.ceil(len(events) * fraction)
    best: Optional[PeakWindow] = None
    best_raw = 0
    for i in range(len(events) - size + 1):
        window = events[i:i + size]
        wpm = calculate_wpm(_correct_count(window), _span_ms(window))
        if wpm is None:
            continue
        rounded = round_half_up(wpm)
        if rounded > best_raw:
            best_raw = rounded
            best = PeakWindow(
                start_position=window[0].position,
                end_position=window[-1].position,
                wpm=min(rounded, cap),
            )
    return best


def _half_wpm(events: Sequence[KeystrokeEvent], min_events: int) -> Optional[float]:
    if len(events) < min_events:
        return None
    return calculate_wpm(_correct_count(events), _span_ms(events))


def fatigue_indicator(
    events: Sequence[KeystrokeEvent],
    min_events: int = MIN_FATIGUE_EVENTS,
    min_half_events: int = MIN_HALF_EVENTS,
) -> Optional[int]:
    """Percent speed change from first half to second half.

    Positive means the typist slowed down, negative means they sped up.
    """
    if len(events) < min_events:
        return None

    midpoint = len(events) // 2
    first = _half_wpm(events[:midpoint], min_half_events)
    second = _half_wpm(events[midpoint:], min_half_events)
    if first is None or second is None or first == 0:
        return None
    return round_half_up((first - second) / first * 100)


def adjusted_wpm(
    events: Sequence[KeystrokeEvent], fallback_wpm: Optional[float] = None
) -> Optional[float]:
    """Time-normalised net speed from correct keystrokes.

    Falls back to the caller's net WPM when the log cannot provide a span.
    """
    if len(events) >= 2:
        wpm = calculate_wpm(_correct_count(events), _span_ms(events))
        if wpm is not None:
            return round_half_up(wpm)
    if fallback_wpm is None:
        return None
    return max(0, fallback_wpm)


def session_speed(
    events: Sequence[KeystrokeEvent],
) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    """Net WPM, raw WPM and accuracy derived from the log alone."""
    if not events:
        return None, None, None

    correct = _correct_count(events)
    accuracy = correct / len(events) * 100
    span = _span_ms(events)
    return calculate_wpm(correct, span), calculate_wpm(len(events), span), accuracy
