# ABOUTME: Heuristic detection of synthetic (scripted) keystroke timing
import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .models import AntiCheatResult, KeystrokeEvent
from .utils import ConfigManager, default_config, population_variance, round_half_up

ANTICHEAT_THRESHOLDS: Dict[str, Any] = default_config()["anticheat"]


def press_intervals(events: Sequence[KeystrokeEvent]) -> List[float]:
    """Strictly positive gaps between consecutive press times."""
    if len(events) < 2:
        return []
    diffs = np.diff([e.press_time for e in events])
    return [float(d) for d in diffs if d > 0]


class AntiCheatValidator:
    """Runs independent timing heuristics and scores the session."""

    def __init__(self, config: Optional[ConfigManager] = None, **overrides: Any):
        self.thresholds = dict(ANTICHEAT_THRESHOLDS)
        if config is not None:
            self.thresholds.update(config.section("anticheat"))
        self.thresholds.update(overrides)

    def validate(
        self,
        events: Sequence[KeystrokeEvent],
        wpm: Optional[float],
        flight_times: Optional[Sequence[float]] = None,
    ) -> AntiCheatResult:
        t = self.thresholds
        if len(events) < t["min_keystrokes_for_analysis"]:
            # Not enough data to judge
            return AntiCheatResult()

        if flight_times is None:
            flight_times = [e.flight_time for e in events if e.flight_time is not None]

        intervals = press_intervals(events)
        min_interval = min(intervals) if intervals else None
        variance = population_variance(intervals) if len(intervals) > 1 else None

        flags: List[str] = []
        synthetic = False

        if min_interval is not None and min_interval < t["min_keystroke_interval_ms"]:
            flags.append("inhuman_speed")
            synthetic = True

        if wpm is not None and wpm > t["max_wpm_without_flag"]:
            flags.append("impossible_wpm")

        if (
            variance is not None
            and variance < t["max_consistent_variance"]
            and len(intervals) > t["min_pattern_intervals"]
        ):
            flags.append("programmatic_pattern")
            synthetic = True

        if self.detect_suspicious_bursts(intervals):
            flags.append("burst_typing")

        if self.detect_perfect_rhythm(intervals):
            flags.append("perfect_rhythm")
            synthetic = True

        if self.detect_uniform_flights(flight_times):
            # Same signal as programmatic_pattern; count it once
            if "programmatic_pattern" not in flags:
                flags.append("uniform_flight_times")
            synthetic = True

        score = 100 - len(flags) * t["flag_penalty"]
        if synthetic:
            score -= t["synthetic_penalty"]
        score = int(max(0, min(100, score)))

        for flag in flags:
            logging.info(f"Anti-cheat flag raised: {flag}")
        is_suspicious = len(flags) >= t["suspicious_flag_threshold"]
        if is_suspicious:
            logging.warning(f"Session flagged as suspicious: {flags} (score {score})")

        return AntiCheatResult(
            is_suspicious=is_suspicious,
            suspicious_flags=tuple(flags),
            validation_score=score,
            min_keystroke_interval=round_half_up(min_interval) if min_interval is not None else None,
            keystroke_variance=round(variance, 2) if variance is not None else None,
            synthetic_input_detected=synthetic,
        )

    def detect_suspicious_bursts(self, intervals: Sequence[float]) -> bool:
        """Any window where most intervals are faster than a human can repeat."""
        window = self.thresholds["burst_window_size"]
        if len(intervals) < window * 2:
            return False

        fast = np.asarray(intervals) < self.thresholds["suspect_interval_ms"]
        windows = np.lib.stride_tricks.sliding_window_view(fast, window)
        ratios = windows.mean(axis=1)
        return bool((ratios >= self.thresholds["burst_threshold_ratio"]).any())

    def detect_perfect_rhythm(self, intervals: Sequence[float]) -> bool:
        if len(intervals) < self.thresholds["min_pattern_intervals"]:
            return False

        deltas = np.abs(np.diff(intervals))
        consistent = int((deltas < self.thresholds["max_consistent_variance"]).sum())
        return consistent / len(intervals) > self.thresholds["perfect_rhythm_threshold"]

    def detect_uniform_flights(self, flight_times: Sequence[float]) -> bool:
        """Near-zero variance in release-to-press gaps."""
        if len(flight_times) <= self.thresholds["min_pattern_intervals"]:
            return False

        band = [f for f in flight_times if 0 < f < self.thresholds["flight_band_ms"]]
        if len(band) <= self.thresholds["min_uniform_flights"]:
            return False
        return population_variance(band) < self.thresholds["max_consistent_variance"]
