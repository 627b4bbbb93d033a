# ABOUTME: Error classification, error bursts and slow-word detection
import re
import statistics
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .models import KeystrokeEvent

ERROR_TYPES = ("substitution", "doublet", "other")
MIN_BURST_EVENTS = 3
MIN_WORD_EVENTS = 5
SLOW_WORD_FACTOR = 1.3
MAX_SLOW_WORDS = 10
MIN_RESOLVED_WORDS = 3


@dataclass(frozen=True)
class WordSpan:
    word: str
    start: int
    end: int  # inclusive


@dataclass(frozen=True)
class ErrorSummary:
    total_errors: int
    errors_by_type: Dict[str, int]
    error_keys: Tuple[str, ...]


def classify_error(event: KeystrokeEvent) -> str:
    if not event.expected_key:
        return "other"
    # Same key as expected but still marked wrong: a double press
    if event.key == event.expected_key:
        return "doublet"
    return "substitution"


def summarize_errors(events: Sequence[KeystrokeEvent]) -> ErrorSummary:
    errors = [e for e in events if not e.is_correct]
    by_type = {name: 0 for name in ERROR_TYPES}
    for event in errors:
        by_type[classify_error(event)] += 1

    # Preserve first-seen order
    error_keys = tuple(dict.fromkeys(e.expected_key for e in errors if e.expected_key is not None))
    return ErrorSummary(total_errors=len(errors), errors_by_type=by_type, error_keys=error_keys)


def error_burst_count(
    events: Sequence[KeystrokeEvent], min_events: int = MIN_BURST_EVENTS
) -> Optional[int]:
    """Number of maximal runs of consecutive incorrect keystrokes."""
    if len(events) < min_events:
        return None

    bursts = 0
    in_burst = False
    for event in events:
        if not event.is_correct:
            if not in_burst:
                bursts += 1
            in_burst = True
        else:
            in_burst = False
    return bursts


def word_spans(text: str) -> List[WordSpan]:
    return [WordSpan(m.group(), m.start(), m.end() - 1) for m in re.finditer(r"\S+", text)]


def slowest_words(
    events: Sequence[KeystrokeEvent],
    expected_text: str,
    factor: float = SLOW_WORD_FACTOR,
    limit: int = MAX_SLOW_WORDS,
    min_events: int = MIN_WORD_EVENTS,
    min_resolved: int = MIN_RESOLVED_WORDS,
) -> Optional[Tuple[str, ...]]:
    """Words that took noticeably longer than the average word."""
    if len(events) < min_events or not expected_text:
        return None

    spans = word_spans(expected_text)
    if len(spans) < 2:
        return None

    timings: List[Tuple[str, float]] = []
    for span in spans:
        word_events = [e for e in events if span.start <= e.position <= span.end]
        if len(word_events) < 2:
            continue
        duration = word_events[-1].release_time - word_events[0].press_time
        if duration > 0:
            timings.append((span.word, duration))

    if len(timings) < min_resolved:
        return None

    avg_duration = statistics.mean(d for _, d in timings)
    slow = [t for t in timings if t[1] > avg_duration * factor]
    slow.sort(key=lambda t: t[1], reverse=True)
    words = tuple(word for word, _ in slow[:limit])
    return words or None
