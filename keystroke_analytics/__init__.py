# ABOUTME: Package initialization for keystroke analytics engine
"""
Keystroke Timing Analytics

Records press/release timing for a typing exercise and derives speed,
rhythm, error, ergonomic and anti-cheat metrics from the finished session.
"""

__version__ = "1.0.0"
__description__ = (
    "Keystroke timing analytics and synthetic input detection for typing tests"
)

from .analyzer import AnalyticsEngine, compute_analytics
from .anticheat import AntiCheatValidator
from .models import AnalyticsReport, AntiCheatResult, KeystrokeEvent
from .race import RaceKeystroke, RaceKeystrokeValidator
from .recorder import KeystrokeRecorder, TypingSession
from .utils import CaptureCallback, ConfigManager, DataManager

__all__ = [
    "AnalyticsEngine",
    "compute_analytics",
    "AntiCheatValidator",
    "AnalyticsReport",
    "AntiCheatResult",
    "KeystrokeEvent",
    "RaceKeystroke",
    "RaceKeystrokeValidator",
    "KeystrokeRecorder",
    "TypingSession",
    "CaptureCallback",
    "ConfigManager",
    "DataManager",
]
