# ABOUTME: Assembles every analyser's output into one immutable analytics report
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from . import digraphs, errors, timing, usage, windowed
from .anticheat import AntiCheatValidator
from .models import AnalyticsReport, KeystrokeEvent
from .recorder import KeystrokeRecorder, TypingSession
from .simulation import simulate_callbacks
from .utils import ConfigManager, DataManager, setup_logging


class AnalyticsEngine:
    """Typing analytics and anti-cheat validation for completed sessions.

    The engine holds configuration only. Every call to `compute_analytics`
    is a pure pass over a closed event log, so one engine can serve many
    sessions and may run off the input thread.
    """

    def __init__(
        self,
        config_path: Optional[str] = "config.yaml",
        config: Optional[ConfigManager] = None,
    ):
        self.config = config or ConfigManager(config_path)
        self.analysis = self.config.section("analysis")
        self.validator = AntiCheatValidator(self.config)
        self.data_manager = DataManager(
            self.config.get("output.reports_directory", "./reports")
        )

    def compute_analytics(
        self,
        session: TypingSession,
        wpm: Optional[float] = None,
        raw_wpm: Optional[float] = None,
        accuracy: Optional[float] = None,
        total_errors: Optional[int] = None,
        test_result_id: Optional[int] = None,
    ) -> AnalyticsReport:
        """Analyse a finished session.

        Headline numbers the caller already knows (net/raw WPM, accuracy,
        error count) are used as given; anything left out is derived from
        the event log.
        """
        return self.analyze_events(
            session.closed_events(),
            session.expected_text,
            wpm=wpm,
            raw_wpm=raw_wpm,
            accuracy=accuracy,
            total_errors=total_errors,
            test_result_id=test_result_id,
        )

    def analyze_events(
        self,
        events: Sequence[KeystrokeEvent],
        expected_text: str = "",
        wpm: Optional[float] = None,
        raw_wpm: Optional[float] = None,
        accuracy: Optional[float] = None,
        total_errors: Optional[int] = None,
        test_result_id: Optional[int] = None,
    ) -> AnalyticsReport:
        events = tuple(events)
        logging.info(f"Analysing session of {len(events)} keystroke events")

        if not events:
            return AnalyticsReport(
                wpm=wpm,
                raw_wpm=raw_wpm,
                accuracy=accuracy,
                total_errors=total_errors,
                test_result_id=test_result_id,
            )

        a = self.analysis
        derived_wpm, derived_raw, derived_accuracy = windowed.session_speed(events)
        wpm = wpm if wpm is not None else derived_wpm
        raw_wpm = raw_wpm if raw_wpm is not None else derived_raw
        accuracy = accuracy if accuracy is not None else derived_accuracy

        stats = timing.timing_stats(events)
        flights = timing.flight_times(events)
        consistency = timing.consistency_score(
            flights,
            outlier_ms=a["flight_outlier_ms"],
            cv_scale=a["cv_scale"],
            min_samples=a["min_consistency_samples"],
        )

        profile = digraphs.profile_digraphs(
            events,
            min_occurrences=a["min_digraph_occurrences"],
            list_size=a["digraph_list_size"],
        )
        error_summary = errors.summarize_errors(events)

        return AnalyticsReport(
            wpm=wpm,
            raw_wpm=raw_wpm,
            accuracy=accuracy,
            consistency=consistency,
            consistency_rating=timing.consistency_rating(consistency),
            avg_dwell_time=stats.avg_dwell_time,
            avg_flight_time=stats.avg_flight_time,
            std_dev_flight_time=stats.std_dev_flight_time,
            fastest_digraph=profile.fastest_digraph,
            slowest_digraph=profile.slowest_digraph,
            top_digraphs=profile.top_digraphs,
            bottom_digraphs=profile.bottom_digraphs,
            finger_usage=usage.finger_usage(events),
            hand_balance=usage.hand_balance(events),
            total_errors=total_errors if total_errors is not None else error_summary.total_errors,
            errors_by_type=error_summary.errors_by_type,
            error_keys=error_summary.error_keys,
            wpm_by_position=windowed.wpm_by_position(
                events,
                buckets=a["position_buckets"],
                cap=a["wpm_cap"],
                min_events=a["min_position_events"],
            ),
            slowest_words=errors.slowest_words(
                events,
                expected_text,
                factor=a["slow_word_factor"],
                limit=a["max_slow_words"],
                min_events=a["min_window_events"],
                min_resolved=a["min_resolved_words"],
            ),
            key_heatmap=usage.key_heatmap(events),
            burst_wpm=windowed.burst_wpm(
                events,
                window_ms=a["burst_window_ms"],
                cap=a["wpm_cap"],
                min_events=a["min_window_events"],
            ),
            adjusted_wpm=windowed.adjusted_wpm(events, fallback_wpm=wpm),
            rolling_accuracy=windowed.rolling_accuracy(
                events, buckets=a["accuracy_buckets"], min_events=a["min_window_events"]
            ),
            typing_rhythm=timing.typing_rhythm(
                flights,
                outlier_ms=a["flight_outlier_ms"],
                cv_scale=a["cv_scale"],
                min_samples=a["min_rhythm_samples"],
            ),
            peak_performance_window=windowed.peak_performance_window(
                events,
                fraction=a["peak_window_fraction"],
                cap=a["wpm_cap"],
                min_events=a["min_window_events"],
            ),
            fatigue_indicator=windowed.fatigue_indicator(
                events,
                min_events=a["min_fatigue_events"],
                min_half_events=a["min_half_events"],
            ),
            error_burst_count=errors.error_burst_count(
                events, min_events=a["min_error_burst_events"]
            ),
            anti_cheat=self.validator.validate(events, wpm, flights),
            test_result_id=test_result_id,
        )

    def generate_reports(
        self,
        report: AnalyticsReport,
        events: Sequence[KeystrokeEvent] = (),
        formats: Optional[List[str]] = None,
    ) -> Dict[str, str]:
        """Generate report files in the requested formats."""
        formats = formats or self.config.get("reporting.export_formats", ["json"])
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        generated_files = {}

        for format_type in formats:
            if format_type == "json":
                path = self.data_manager.save_report(report.to_dict(), timestamp)
                generated_files["json"] = str(path)
            elif format_type == "csv":
                path = self.data_manager.export_events_csv(events, timestamp)
                generated_files["csv"] = str(path)
            else:
                logging.warning(f"Unknown report format skipped: {format_type}")

        logging.info(f"Generated reports: {list(generated_files.keys())}")
        return generated_files


def compute_analytics(session: TypingSession, **headline: Any) -> AnalyticsReport:
    """Analyse a session with the built-in default thresholds."""
    return AnalyticsEngine(config_path=None).compute_analytics(session, **headline)


def _format(value: Any, spec: str = ".1f") -> str:
    return "n/a" if value is None else format(value, spec)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the analyzer."""
    import argparse

    parser = argparse.ArgumentParser(description="Keystroke timing analytics")
    parser.add_argument("--config", default="config.yaml", help="Configuration file path")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", help="Recorded capture file (.json or .csv)")
    source.add_argument(
        "--simulate", choices=["human", "bot"], help="Analyse a generated session"
    )
    parser.add_argument("--text", help="Expected reference text")
    parser.add_argument("--seed", type=int, default=42, help="Seed for --simulate")
    parser.add_argument("--wpm", type=float, help="Net WPM reported by the test")
    parser.add_argument("--raw-wpm", type=float, help="Raw WPM reported by the test")
    parser.add_argument("--accuracy", type=float, help="Accuracy reported by the test")
    parser.add_argument("--export-csv", action="store_true", help="Export events to CSV")
    parser.add_argument("--output", help="Output directory for reports")

    args = parser.parse_args(argv)

    engine = AnalyticsEngine(args.config)
    setup_logging(
        engine.config.get("output.log_level", "INFO"),
        engine.config.get("output.log_file"),
    )
    if args.output:
        engine.data_manager.reports_dir = Path(args.output)

    if args.input:
        callbacks, file_text = engine.data_manager.load_capture(args.input)
        text = args.text if args.text is not None else (file_text or "")
    else:
        text = args.text or "the quick brown fox jumps over the lazy dog " * 3
        callbacks = simulate_callbacks(text.strip(), args.simulate, seed=args.seed)
        text = text.strip()

    recorder = KeystrokeRecorder(expected_text=text)
    recorder.replay(callbacks)
    if not recorder.events:
        print("No complete keystrokes found in the capture.")
        return 1

    report = engine.compute_analytics(
        recorder.session, wpm=args.wpm, raw_wpm=args.raw_wpm, accuracy=args.accuracy
    )

    formats = ["json"] + (["csv"] if args.export_csv else [])
    generated_files = engine.generate_reports(report, recorder.session.closed_events(), formats)

    print("\n=== Typing Analytics Summary ===")
    print(f"Keystrokes: {len(recorder.events):,}")
    print(f"WPM: {_format(report.wpm)} (raw {_format(report.raw_wpm)})")
    print(f"Accuracy: {_format(report.accuracy)}%")
    print(f"Consistency: {_format(report.consistency)}")
    print(f"Burst WPM: {_format(report.burst_wpm, 'd')}")
    print(f"Fatigue: {_format(report.fatigue_indicator, 'd')}%")

    result = report.anti_cheat
    print("\n=== Anti-Cheat ===")
    print(f"Validation score: {result.validation_score}")
    print(f"Flags: {', '.join(result.suspicious_flags) or 'none'}")
    print(f"Suspicious: {'yes' if result.is_suspicious else 'no'}")

    print("\nReports generated:")
    for format_type, filepath in generated_files.items():
        print(f"  {format_type.upper()}: {filepath}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
