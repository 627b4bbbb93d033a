# ABOUTME: Server-side validation of submitted race keystrokes and verification challenges
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .utils import ConfigManager, calculate_wpm, default_config, round_half_up

_SHARED_KEYS = (
    "min_keystroke_interval_ms",
    "suspect_interval_ms",
    "max_consistent_variance",
    "min_keystrokes_for_analysis",
    "burst_window_size",
    "burst_threshold_ratio",
)


def _race_thresholds() -> Dict[str, Any]:
    defaults = default_config()
    thresholds = dict(defaults["race"])
    thresholds.update({key: defaults["anticheat"][key] for key in _SHARED_KEYS})
    return thresholds


RACE_THRESHOLDS = _race_thresholds()

CHALLENGE_TEXTS = (
    "The quick brown fox jumps over the lazy dog near the river bank.",
    "Pack my box with five dozen liquor jugs and bring them to the store.",
    "How vexingly quick daft zebras jump across the open field today.",
    "The five boxing wizards jump quickly through the morning fog now.",
    "Sphinx of black quartz judge my vow while sitting by the campfire.",
    "Two driven jocks help fax my big quiz about swimming techniques.",
    "The job requires extra pluck and zeal from every young wage earner.",
    "Crazy Frederick bought many very exquisite opal jewels for the auction.",
)


@dataclass(frozen=True)
class RaceKeystroke:
    """A keystroke as submitted by a race client."""

    key: str
    expected: str
    timestamp: float  # ms
    correct: bool
    position: int
    is_trusted: Optional[bool] = None


@dataclass(frozen=True)
class IntervalMetrics:
    avg_interval: float = 0.0
    min_interval: float = 0.0
    std_dev_interval: float = 0.0
    client_reported_wpm: float = 0.0
    wpm_discrepancy: float = 0.0


@dataclass(frozen=True)
class RaceValidationResult:
    is_valid: bool
    is_flagged: bool
    flag_reasons: Tuple[str, ...]
    server_calculated_wpm: float
    requires_review: bool
    suspicious_patterns: int
    metrics: IntervalMetrics = field(default_factory=IntervalMetrics)


@dataclass(frozen=True)
class ChallengeOutcome:
    passed: bool
    reason: Optional[str] = None
    server_wpm: Optional[int] = None
    certified_wpm: Optional[int] = None


class RaceKeystrokeValidator:
    """Re-derives speed from submitted keystrokes and flags tampering."""

    def __init__(self, config: Optional[ConfigManager] = None, **overrides: Any):
        self.thresholds = dict(RACE_THRESHOLDS)
        if config is not None:
            for section in ("anticheat", "race"):
                self.thresholds.update(
                    {k: v for k, v in config.section(section).items() if k in RACE_THRESHOLDS}
                )
        self.thresholds.update(overrides)

    def calculate_intervals(self, keystrokes: Sequence[RaceKeystroke]) -> List[float]:
        return [
            curr.timestamp - prev.timestamp for prev, curr in zip(keystrokes, keystrokes[1:])
        ]

    def calculate_server_wpm(self, keystrokes: Sequence[RaceKeystroke]) -> int:
        if len(keystrokes) < 2:
            return 0
        correct = sum(1 for k in keystrokes if k.correct)
        wpm = calculate_wpm(correct, keystrokes[-1].timestamp - keystrokes[0].timestamp)
        return round_half_up(wpm) if wpm is not None else 0

    def _interval_stats(self, intervals: Sequence[float]) -> Tuple[float, float, float]:
        if not intervals:
            return 0.0, 0.0, 0.0
        data = np.asarray(intervals, dtype=float)
        return float(data.mean()), float(data.min()), float(data.std())

    def detect_burst_typing(self, keystrokes: Sequence[RaceKeystroke]) -> bool:
        window = self.thresholds["burst_window_size"]
        if len(keystrokes) < window * 2:
            return False

        intervals = self.calculate_intervals(keystrokes)
        for i in range(len(intervals) - window + 1):
            fast = sum(1 for t in intervals[i:i + window] if t < self.thresholds["suspect_interval_ms"])
            if fast / window >= self.thresholds["burst_threshold_ratio"]:
                return True
        return False

    def detect_programmatic_patterns(self, keystrokes: Sequence[RaceKeystroke]) -> bool:
        intervals = self.calculate_intervals(keystrokes)
        if len(intervals) < 10:
            return False

        consistent = sum(
            1
            for prev, curr in zip(intervals, intervals[1:])
            if abs(curr - prev) < self.thresholds["max_consistent_variance"]
        )
        return consistent / len(intervals) > self.thresholds["programmatic_ratio"]

    def detect_untrusted_events(self, keystrokes: Sequence[RaceKeystroke]) -> bool:
        untrusted = sum(1 for k in keystrokes if k.is_trusted is False)
        return untrusted > len(keystrokes) * self.thresholds["untrusted_ratio"]

    def validate_keystrokes(
        self,
        keystrokes: Sequence[RaceKeystroke],
        client_reported_wpm: float,
        user_id: Optional[str] = None,
        certified_wpm: Optional[float] = None,
    ) -> RaceValidationResult:
        """Validate a race submission against the client's reported speed."""
        t = self.thresholds
        if len(keystrokes) < t["min_keystrokes_for_analysis"]:
            return RaceValidationResult(
                is_valid=True,
                is_flagged=False,
                flag_reasons=(),
                server_calculated_wpm=client_reported_wpm,
                requires_review=False,
                suspicious_patterns=0,
                metrics=IntervalMetrics(client_reported_wpm=client_reported_wpm),
            )

        intervals = self.calculate_intervals(keystrokes)
        avg, minimum, std_dev = self._interval_stats(intervals)
        server_wpm = self.calculate_server_wpm(keystrokes)
        discrepancy = abs(server_wpm - client_reported_wpm)

        reasons: List[str] = []
        patterns = 0
        review = False

        if minimum < t["min_keystroke_interval_ms"]:
            reasons.append("inhuman_speed")
            patterns += 1
            review = True

        if discrepancy > t["wpm_discrepancy_threshold"]:
            reasons.append("wpm_discrepancy")
            patterns += 1
            review = True

        if self.detect_burst_typing(keystrokes):
            reasons.append("burst_typing")
            patterns += 1

        if self.detect_programmatic_patterns(keystrokes):
            reasons.append("programmatic_pattern")
            patterns += 1
            review = True

        if self.detect_untrusted_events(keystrokes):
            reasons.append("untrusted_events")
            patterns += 1
            review = True

        correct = sum(1 for k in keystrokes if k.correct)
        if correct == len(keystrokes) and server_wpm > t["perfect_accuracy_wpm_threshold"]:
            reasons.append("perfect_accuracy_high_wpm")
            patterns += 1

        if server_wpm > t["max_wpm_without_certification"] and user_id:
            if certified_wpm is None or server_wpm > certified_wpm * t["certification_margin"]:
                reasons.append("requires_certification")
                review = True

        is_valid = patterns < 3 and "inhuman_speed" not in reasons
        if reasons:
            logging.info(f"Race submission flagged: {reasons} (server {server_wpm} WPM)")

        return RaceValidationResult(
            is_valid=is_valid,
            is_flagged=bool(reasons),
            flag_reasons=tuple(reasons),
            server_calculated_wpm=server_wpm,
            requires_review=review,
            suspicious_patterns=patterns,
            metrics=IntervalMetrics(
                avg_interval=avg,
                min_interval=minimum,
                std_dev_interval=std_dev,
                client_reported_wpm=client_reported_wpm,
                wpm_discrepancy=discrepancy,
            ),
        )

    def verify_challenge(
        self, keystrokes: Sequence[RaceKeystroke], client_wpm: float
    ) -> ChallengeOutcome:
        """Check a verification run typed after a high-speed flag."""
        t = self.thresholds
        if len(keystrokes) < t["min_challenge_keystrokes"]:
            return ChallengeOutcome(False, "Not enough keystrokes recorded")

        _, minimum, _ = self._interval_stats(self.calculate_intervals(keystrokes))
        server_wpm = self.calculate_server_wpm(keystrokes)

        if minimum < t["min_keystroke_interval_ms"]:
            return ChallengeOutcome(False, "Inhuman typing speed detected", server_wpm)
        if self.detect_programmatic_patterns(keystrokes):
            return ChallengeOutcome(False, "Suspicious typing pattern detected", server_wpm)
        if abs(server_wpm - client_wpm) > t["wpm_discrepancy_threshold"] * 2:
            return ChallengeOutcome(False, "WPM mismatch detected", server_wpm)

        certified = round_half_up(server_wpm * t["certification_margin"])
        return ChallengeOutcome(True, None, server_wpm, certified)


def generate_challenge_text(rng: Optional[random.Random] = None) -> str:
    """Pick a pangram for a verification challenge."""
    return (rng or random).choice(CHALLENGE_TEXTS)
