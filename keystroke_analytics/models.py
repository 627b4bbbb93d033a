# ABOUTME: Immutable value types produced by the recorder and the analysers
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

_MAPPING_FIELDS = ("finger_usage", "errors_by_type", "key_heatmap")


def _plain(value: Any) -> Any:
    if isinstance(value, MappingProxyType):
        return dict(value)
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    if is_dataclass(value):
        return asdict(value)
    return value


@dataclass(frozen=True)
class KeystrokeEvent:
    """One completed press/release pair."""

    key: str
    code: str
    press_time: float
    release_time: float
    dwell_time: float
    flight_time: Optional[float]
    is_correct: bool
    expected_key: Optional[str]
    position: int
    finger: Optional[str] = None
    hand: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeystrokeEvent":
        """Create from dictionary."""
        return cls(**data)


@dataclass(frozen=True)
class DigraphTiming:
    digraph: str
    avg_time: int
    count: int


@dataclass(frozen=True)
class PeakWindow:
    start_position: int
    end_position: int
    wpm: int


@dataclass(frozen=True)
class AntiCheatResult:
    """Outcome of the synthetic-input heuristics for one session."""

    is_suspicious: bool = False
    suspicious_flags: Tuple[str, ...] = ()
    validation_score: int = 100
    min_keystroke_interval: Optional[int] = None
    keystroke_variance: Optional[float] = None
    synthetic_input_detected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["suspicious_flags"] = list(self.suspicious_flags)
        return data


@dataclass(frozen=True)
class AnalyticsReport:
    """Everything the engine derives from one closed session.

    Numeric fields that could not be computed from the available data are
    None. Consumers should treat every field as optional.
    """

    wpm: Optional[float] = None
    raw_wpm: Optional[float] = None
    accuracy: Optional[float] = None
    consistency: Optional[float] = None
    consistency_rating: Optional[int] = None
    avg_dwell_time: Optional[float] = None
    avg_flight_time: Optional[float] = None
    std_dev_flight_time: Optional[float] = None
    fastest_digraph: Optional[str] = None
    slowest_digraph: Optional[str] = None
    top_digraphs: Optional[Tuple[DigraphTiming, ...]] = None
    bottom_digraphs: Optional[Tuple[DigraphTiming, ...]] = None
    finger_usage: Optional[Mapping[str, int]] = field(default=None, hash=False)
    hand_balance: Optional[float] = None
    total_errors: Optional[int] = None
    errors_by_type: Optional[Mapping[str, int]] = field(default=None, hash=False)
    error_keys: Optional[Tuple[str, ...]] = None
    wpm_by_position: Optional[Tuple[int, ...]] = None
    slowest_words: Optional[Tuple[str, ...]] = None
    key_heatmap: Optional[Mapping[str, int]] = field(default=None, hash=False)
    burst_wpm: Optional[int] = None
    adjusted_wpm: Optional[float] = None
    rolling_accuracy: Optional[Tuple[int, ...]] = None
    typing_rhythm: Optional[int] = None
    peak_performance_window: Optional[PeakWindow] = None
    fatigue_indicator: Optional[int] = None
    error_burst_count: Optional[int] = None
    anti_cheat: AntiCheatResult = field(default_factory=AntiCheatResult)
    test_result_id: Optional[int] = None

    def __post_init__(self):
        for name in _MAPPING_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    @property
    def is_suspicious(self) -> bool:
        return self.anti_cheat.is_suspicious

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain data for JSON output."""
        data = {f.name: _plain(getattr(self, f.name)) for f in fields(self)}
        data["anti_cheat"] = self.anti_cheat.to_dict()
        return data
