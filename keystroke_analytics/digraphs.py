# ABOUTME: Two-key transition timing profile with fastest and slowest digraphs
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .models import DigraphTiming, KeystrokeEvent
from .utils import round_half_up

MIN_OCCURRENCES = 2
LIST_SIZE = 5


@dataclass(frozen=True)
class DigraphProfile:
    fastest_digraph: Optional[str]
    slowest_digraph: Optional[str]
    top_digraphs: Optional[Tuple[DigraphTiming, ...]]
    bottom_digraphs: Optional[Tuple[DigraphTiming, ...]]


def collect_digraphs(events: Sequence[KeystrokeEvent]) -> Dict[str, List[float]]:
    """Transition times (next press minus previous release) per digraph."""
    digraphs: Dict[str, List[float]] = defaultdict(list)
    for prev, curr in zip(events, events[1:]):
        if prev.release_time is None or curr.press_time is None:
            continue
        digraphs[prev.key + curr.key].append(curr.press_time - prev.release_time)
    return dict(digraphs)


def extreme_digraphs(digraphs: Dict[str, List[float]]) -> Tuple[Optional[str], Optional[str]]:
    """Fastest and slowest digraph by mean time, with no occurrence threshold."""
    if not digraphs:
        return None, None

    averages = {d: sum(times) / len(times) for d, times in digraphs.items()}
    # min/max keep the first digraph seen on ties
    return min(averages, key=averages.get), max(averages, key=averages.get)


def ranked_digraphs(
    digraphs: Dict[str, List[float]],
    min_occurrences: int = MIN_OCCURRENCES,
    list_size: int = LIST_SIZE,
) -> Tuple[Optional[Tuple[DigraphTiming, ...]], Optional[Tuple[DigraphTiming, ...]]]:
    """Top and bottom digraph lists among repeated digraphs."""
    if len(digraphs) < list_size:
        return None, None

    stats = [
        DigraphTiming(
            digraph=digraph,
            avg_time=round_half_up(sum(times) / len(times)),
            count=len(times),
        )
        for digraph, times in digraphs.items()
        # Single occurrences are noise
        if len(times) >= min_occurrences
    ]
    if len(stats) < list_size:
        return None, None

    stats.sort(key=lambda s: s.avg_time)
    top = tuple(stats[:list_size])
    bottom = tuple(reversed(stats[-list_size:]))
    return top, bottom


def profile_digraphs(
    events: Sequence[KeystrokeEvent],
    min_occurrences: int = MIN_OCCURRENCES,
    list_size: int = LIST_SIZE,
) -> DigraphProfile:
    digraphs = collect_digraphs(events)
    fastest, slowest = extreme_digraphs(digraphs)
    top, bottom = ranked_digraphs(digraphs, min_occurrences, list_size)
    return DigraphProfile(
        fastest_digraph=fastest,
        slowest_digraph=slowest,
        top_digraphs=top,
        bottom_digraphs=bottom,
    )
