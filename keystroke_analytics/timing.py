# ABOUTME: Dwell/flight statistics and the consistency and rhythm scores
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .models import KeystrokeEvent
from .utils import clamp, mean, population_std, round_half_up

FLIGHT_OUTLIER_MS = 1000
# Tunable: scales the coefficient of variation onto 0-100. Keep it fixed so
# scores stay comparable between sessions.
CV_SCALE = 50


@dataclass(frozen=True)
class TimingStats:
    avg_dwell_time: Optional[float]
    avg_flight_time: Optional[float]
    std_dev_flight_time: Optional[float]


def dwell_times(events: Sequence[KeystrokeEvent]) -> List[float]:
    return [e.dwell_time for e in events if e.dwell_time is not None]


def flight_times(events: Sequence[KeystrokeEvent]) -> List[float]:
    return [e.flight_time for e in events if e.flight_time is not None]


def timing_stats(events: Sequence[KeystrokeEvent]) -> TimingStats:
    """Population statistics over the events that define each value."""
    flights = flight_times(events)
    return TimingStats(
        avg_dwell_time=mean(dwell_times(events)),
        avg_flight_time=mean(flights),
        std_dev_flight_time=population_std(flights) if len(flights) > 1 else None,
    )


def variation_score(
    flights: Sequence[float],
    min_samples: int,
    outlier_ms: float = FLIGHT_OUTLIER_MS,
    cv_scale: float = CV_SCALE,
) -> Optional[float]:
    """Score 0-100 from the coefficient of variation of flight times.

    Long pauses (>= outlier_ms) are dropped first. If that leaves too few
    samples, every strictly positive flight time is used instead.
    """
    if len(flights) < min_samples:
        return None

    sample = [t for t in flights if 0 < t < outlier_ms]
    if len(sample) < min_samples:
        sample = [t for t in flights if t > 0]
    if len(sample) < min_samples:
        return None

    avg = mean(sample)
    cv = population_std(sample) / avg
    return clamp(100 - cv * cv_scale)


def consistency_score(
    flights: Sequence[float],
    outlier_ms: float = FLIGHT_OUTLIER_MS,
    cv_scale: float = CV_SCALE,
    min_samples: int = 2,
) -> Optional[float]:
    return variation_score(flights, min_samples, outlier_ms, cv_scale)


def typing_rhythm(
    flights: Sequence[float],
    outlier_ms: float = FLIGHT_OUTLIER_MS,
    cv_scale: float = CV_SCALE,
    min_samples: int = 3,
) -> Optional[int]:
    """Rhythm score, same algorithm as consistency but rounded."""
    score = variation_score(flights, min_samples, outlier_ms, cv_scale)
    return round_half_up(score) if score is not None else None


def consistency_rating(consistency: Optional[float]) -> Optional[int]:
    if consistency is None:
        return None
    return int(clamp(round_half_up(consistency)))
