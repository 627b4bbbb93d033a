# ABOUTME: Shared utilities for the keystroke analytics engine
import copy
import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import yaml

MS_PER_MINUTE = 60000.0
CHARS_PER_WORD = 5


def default_config() -> Dict[str, Any]:
    """Default configuration values."""
    return {
        "analysis": {
            # Flight times at or above this are pauses, not rhythm
            "flight_outlier_ms": 1000,
            # Tunable: maps the coefficient of variation onto 0-100
            "cv_scale": 50,
            "min_consistency_samples": 2,
            "min_rhythm_samples": 3,
            "min_window_events": 5,
            "min_position_events": 10,
            "min_fatigue_events": 10,
            "min_half_events": 5,
            "min_error_burst_events": 3,
            "burst_window_ms": 5000,
            "wpm_cap": 300,
            "position_buckets": 10,
            "accuracy_buckets": 5,
            "peak_window_fraction": 0.2,
            "min_digraph_occurrences": 2,
            "digraph_list_size": 5,
            "slow_word_factor": 1.3,
            "max_slow_words": 10,
            "min_resolved_words": 3,
        },
        "anticheat": {
            "min_keystroke_interval_ms": 10,
            "suspect_interval_ms": 25,
            "max_wpm_without_flag": 200,
            "max_consistent_variance": 5,
            "min_keystrokes_for_analysis": 20,
            "burst_window_size": 10,
            "burst_threshold_ratio": 0.8,
            "perfect_rhythm_threshold": 0.95,
            "suspicious_flag_threshold": 2,
            "flight_band_ms": 500,
            "min_pattern_intervals": 20,
            "min_uniform_flights": 10,
            "flag_penalty": 20,
            "synthetic_penalty": 30,
        },
        "race": {
            "wpm_discrepancy_threshold": 15,
            "perfect_accuracy_wpm_threshold": 80,
            "max_wpm_without_certification": 100,
            "programmatic_ratio": 0.9,
            "untrusted_ratio": 0.1,
            "certification_margin": 1.25,
            "min_challenge_keystrokes": 10,
        },
        "output": {
            "reports_directory": "./reports",
            "log_level": "INFO",
            "log_file": None,
        },
        "reporting": {
            "export_formats": ["json"],
        },
    }


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict):
            if isinstance(value, dict):
                merged[key] = _deep_merge(merged[key], value)
            else:
                # An emptied or scalar section keeps its defaults
                logging.warning(f"Config section '{key}' is not a mapping, using defaults")
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Configuration management with validation."""

    def __init__(self, config_path: Union[str, Path, None] = "config.yaml"):
        self.config_path = Path(config_path) if config_path else None
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration and merge it over the defaults."""
        if self.config_path is None:
            return default_config()
        try:
            with open(self.config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logging.warning(f"Config file {self.config_path} not found, using defaults")
            return default_config()
        except yaml.YAMLError as e:
            logging.error(f"Error parsing config file: {e}")
            return default_config()

        if not isinstance(loaded, dict):
            logging.error(f"Config file {self.config_path} is not a mapping, using defaults")
            return default_config()
        return _deep_merge(default_config(), loaded)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with dot notation."""
        keys = key.split(".")
        value = self.config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def section(self, name: str) -> Dict[str, Any]:
        """Return a copy of one top-level section."""
        value = self.config.get(name)
        return dict(value) if isinstance(value, dict) else {}


@dataclass(frozen=True)
class CaptureCallback:
    """One raw callback forwarded by the capture layer."""

    kind: str  # "down" or "up"
    key: str
    code: str
    timestamp: float
    is_correct: bool = True
    expected: Optional[str] = None
    has_expected: bool = False
    position: Optional[int] = None


class DataManager:
    """Loading capture files and writing report artefacts."""

    def __init__(self, reports_dir: Union[str, Path] = "./reports"):
        self.reports_dir = Path(reports_dir)

    def load_capture(
        self, path: Union[str, Path]
    ) -> Tuple[List[CaptureCallback], Optional[str]]:
        """Load a recorded callback stream from JSON or CSV.

        A JSON capture is either a list of callback rows or an object with
        "callbacks" and an optional "expected_text". Returns the callbacks
        and the expected text when the file carries one.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        expected_text = None
        if suffix == ".json":
            with open(path, "r") as f:
                rows = json.load(f)
            if isinstance(rows, dict):
                expected_text = rows.get("expected_text")
                rows = rows.get("callbacks", [])
        elif suffix == ".csv":
            df = pd.read_csv(path)
            df = df.astype(object).where(pd.notnull(df), None)
            rows = df.to_dict(orient="records")
        else:
            raise ValueError(f"Unsupported capture format: {path.suffix}")

        # CSV cells always exist, so only a non-empty cell overrides there
        strict_expected = suffix == ".json"
        callbacks = [self._parse_row(row, strict_expected) for row in rows]
        logging.info(f"Loaded {len(callbacks)} callbacks from {path}")
        return callbacks, expected_text

    def _parse_row(self, row: Dict[str, Any], strict_expected: bool = True) -> CaptureCallback:
        kind = str(row.get("type", "")).lower()
        if kind not in ("down", "up"):
            raise ValueError(f"Invalid callback type: {row.get('type')!r}")

        position = row.get("position")
        return CaptureCallback(
            kind=kind,
            key=str(row["key"]),
            code=str(row.get("code") or ""),
            timestamp=float(row["timestamp"]),
            is_correct=_as_bool(row.get("isCorrect", row.get("is_correct", True))),
            expected=row.get("expected"),
            has_expected=(
                "expected" in row if strict_expected else row.get("expected") is not None
            ),
            position=int(position) if position is not None else None,
        )

    def save_report(self, report_dict: Dict[str, Any], timestamp: Optional[str] = None) -> Path:
        """Write a report as indented JSON."""
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        timestamp = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = self.reports_dir / f"typing_analysis_{timestamp}.json"
        with open(filename, "w") as f:
            json.dump(report_dict, f, indent=2, default=str)
        logging.info(f"Saved report to {filename}")
        return filename

    def export_events_csv(self, events: Sequence[Any], timestamp: Optional[str] = None) -> Path:
        """Export the keystroke event log to CSV format."""
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        timestamp = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = self.reports_dir / f"typing_events_{timestamp}.csv"
        df = pd.DataFrame([event.to_dict() for event in events])
        df.to_csv(filename, index=False)
        logging.info(f"Exported {len(events)} events to {filename}")
        return filename


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging for the application."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, towards +inf in general."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def mean(values: Iterable[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty sample."""
    data = list(values)
    if not data:
        return None
    return float(np.mean(data))


def population_variance(values: Iterable[float]) -> Optional[float]:
    data = list(values)
    if not data:
        return None
    return float(np.var(data))


def population_std(values: Iterable[float]) -> Optional[float]:
    data = list(values)
    if not data:
        return None
    return float(np.std(data))


def calculate_wpm(correct_chars: int, duration_ms: float) -> Optional[float]:
    """Calculate words per minute from a character count and a span in ms."""
    if duration_ms <= 0:
        return None

    # Standard WPM calculation (5 characters = 1 word)
    words = correct_chars / CHARS_PER_WORD
    minutes = duration_ms / MS_PER_MINUTE
    return words / minutes
