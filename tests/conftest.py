# ABOUTME: Shared fixtures for building recorded typing sessions in tests
from typing import Iterable, List, Optional, Sequence

import pytest

from keystroke_analytics.keymap import code_for_char
from keystroke_analytics.recorder import KeystrokeRecorder, TypingSession


def alternating_press_times(count: int, first: float, second: float) -> List[float]:
    """Press times whose gaps alternate between two values."""
    times = [0.0]
    for i in range(count - 1):
        times.append(times[-1] + (first if i % 2 == 0 else second))
    return times


def record_text(
    text: str,
    press_times: Optional[Sequence[float]] = None,
    interval: float = 100.0,
    dwell: float = 50.0,
    errors: Iterable[int] = (),
) -> TypingSession:
    """Type `text` through a recorder, one key fully released before the next."""
    recorder = KeystrokeRecorder(expected_text=text)
    if press_times is None:
        press_times = [i * interval for i in range(len(text))]
    wrong = set(errors)

    for position, (expected, press) in enumerate(zip(text, press_times)):
        is_correct = position not in wrong
        key = expected if is_correct else ("x" if expected != "x" else "z")
        code = code_for_char(key)
        recorder.session.current_position = position
        recorder.on_key_down(key, code, press)
        recorder.on_key_up(key, code, press + dwell, is_correct)
    recorder.session.current_position = len(text)
    return recorder.session


@pytest.fixture
def record():
    return record_text


@pytest.fixture
def alternating():
    return alternating_press_times


@pytest.fixture
def sixty_chars():
    """Sixty characters of reference text."""
    text = "the quick brown fox jumps over the lazy dog while cats sleep."
    return text[:60]
