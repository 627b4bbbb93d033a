# ABOUTME: Finger load, hand balance and per-key heatmap counts
from collections import Counter
from typing import Dict, Optional, Sequence

from .models import KeystrokeEvent


def finger_usage(events: Sequence[KeystrokeEvent]) -> Optional[Dict[str, int]]:
    if not events:
        return None
    return dict(Counter(e.finger for e in events if e.finger))


def hand_balance(events: Sequence[KeystrokeEvent]) -> Optional[float]:
    """Share of left-hand keystrokes among one-handed keystrokes, in percent.

    Space bar presses count for both hands and are left out.
    """
    left = sum(1 for e in events if e.hand == "left")
    right = sum(1 for e in events if e.hand == "right")
    if left + right == 0:
        return None
    return left / (left + right) * 100


def key_heatmap(events: Sequence[KeystrokeEvent]) -> Optional[Dict[str, int]]:
    if not events:
        return None
    return dict(Counter(e.key.upper() for e in events))
