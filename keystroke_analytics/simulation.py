# ABOUTME: Deterministic synthetic callback streams for demos and tests
import random
from typing import Iterable, List, Optional, Set

from .keymap import code_for_char
from .utils import CaptureCallback

PROFILES = {
    # mean interval, interval std dev, mean dwell, dwell std dev (ms)
    "human": (150.0, 40.0, 90.0, 15.0),
    "bot": (50.0, 0.0, 20.0, 0.0),
}

MIN_HUMAN_INTERVAL_MS = 60.0


def _wrong_char(expected: str) -> str:
    return "x" if expected.lower() != "x" else "z"


def simulate_callbacks(
    text: str,
    profile: str = "human",
    seed: int = 42,
    error_positions: Optional[Iterable[int]] = None,
    start_time: float = 1000.0,
) -> List[CaptureCallback]:
    """Create realistic sample callbacks for typing `text` once through."""
    if profile not in PROFILES:
        raise ValueError(f"Unknown typing profile: {profile}")

    mean_interval, interval_sd, mean_dwell, dwell_sd = PROFILES[profile]
    rng = random.Random(seed)
    errors: Set[int] = set(error_positions or ())

    press_times = [start_time]
    for _ in range(1, len(text)):
        interval = rng.gauss(mean_interval, interval_sd) if interval_sd else mean_interval
        if profile == "human":
            interval = max(interval, MIN_HUMAN_INTERVAL_MS)
        press_times.append(press_times[-1] + interval)

    callbacks: List[CaptureCallback] = []
    for position, expected in enumerate(text):
        press_time = press_times[position]
        if position + 1 < len(press_times):
            gap = press_times[position + 1] - press_time
        else:
            gap = mean_interval

        dwell = rng.gauss(mean_dwell, dwell_sd) if dwell_sd else mean_dwell
        # Release before the next press so repeated letters never overlap
        dwell = max(1.0, min(dwell, gap * 0.6))

        is_correct = position not in errors
        key = expected if is_correct else _wrong_char(expected)
        code = code_for_char(key)
        callbacks.append(CaptureCallback("down", key, code, press_time))
        callbacks.append(
            CaptureCallback(
                "up",
                key,
                code,
                press_time + dwell,
                is_correct=is_correct,
                expected=expected,
                has_expected=True,
                position=position,
            )
        )

    callbacks.sort(key=lambda c: c.timestamp)
    return callbacks
