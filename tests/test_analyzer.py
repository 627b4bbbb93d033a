# ABOUTME: Unit tests for report assembly, report files and the command line
import json

import pytest

from keystroke_analytics.analyzer import AnalyticsEngine, compute_analytics, main
from keystroke_analytics.recorder import KeystrokeRecorder, TypingSession
from keystroke_analytics.simulation import simulate_callbacks


class TestAnalyticsEngine:
    """Test full session analysis."""

    @pytest.fixture
    def engine(self, tmp_path):
        """Create an engine writing reports into a temporary directory."""
        config_path = tmp_path / 'config.yaml'
        config_path.write_text(f"""
output:
  reports_directory: {tmp_path}/reports
analysis:
  wpm_cap: 300
""")
        return AnalyticsEngine(str(config_path))

    @pytest.fixture
    def human_session(self, record, alternating, sixty_chars):
        """Sixty correct keystrokes with gaps alternating 150/250ms, each held 80ms."""
        return record(sixty_chars, press_times=alternating(60, 150.0, 250.0), dwell=80.0)

    def test_human_session(self, engine, human_session):
        report = engine.compute_analytics(human_session)

        # 60 correct keystrokes over 11830ms
        assert report.wpm == pytest.approx(12 / (11830 / 60000))
        assert report.raw_wpm == pytest.approx(report.wpm)
        assert report.accuracy == 100.0
        assert report.total_errors == 0
        assert report.error_burst_count == 0
        assert report.avg_dwell_time == 80.0
        assert 0 <= report.consistency <= 100
        assert report.consistency_rating == round(report.consistency)
        assert len(report.wpm_by_position) == 10
        assert report.rolling_accuracy == (100,) * 5
        assert report.key_heatmap['E'] == 6
        assert report.hand_balance is not None

        assert report.is_suspicious is False
        assert report.anti_cheat.suspicious_flags == ()
        assert report.anti_cheat.validation_score == 100
        assert report.anti_cheat.min_keystroke_interval == 150

    def test_caller_headline_numbers_win(self, engine, human_session):
        report = engine.compute_analytics(
            human_session, wpm=55.0, raw_wpm=58.0, accuracy=97.5,
            total_errors=2, test_result_id=12,
        )

        assert report.wpm == 55.0
        assert report.raw_wpm == 58.0
        assert report.accuracy == 97.5
        assert report.total_errors == 2
        assert report.test_result_id == 12
        # Derived from the log, not from the caller's speed
        assert report.adjusted_wpm == 61

    def test_empty_session(self, engine):
        report = engine.compute_analytics(TypingSession('hello'), wpm=40.0, test_result_id=3)

        assert report.wpm == 40.0
        assert report.test_result_id == 3
        assert report.consistency is None
        assert report.burst_wpm is None
        assert report.finger_usage is None
        assert report.anti_cheat.validation_score == 100
        assert report.is_suspicious is False

    def test_errors_are_reported(self, engine, record, sixty_chars, alternating):
        session = record(sixty_chars, press_times=alternating(60, 150.0, 250.0),
                         dwell=80.0, errors=[4, 5, 6, 20])
        report = engine.compute_analytics(session)

        assert report.total_errors == 4
        assert report.error_burst_count == 2
        assert report.errors_by_type['substitution'] == 4
        assert report.error_keys == ('q', 'u', 'i', 'j')
        assert report.accuracy == pytest.approx(56 / 60 * 100)

    def test_bot_session_is_flagged(self, engine, sixty_chars):
        recorder = KeystrokeRecorder(expected_text=sixty_chars)
        recorder.replay(simulate_callbacks(sixty_chars, 'bot'))
        report = engine.compute_analytics(recorder.session)

        assert report.is_suspicious is True
        assert report.anti_cheat.synthetic_input_detected is True
        assert report.anti_cheat.suspicious_flags == (
            'impossible_wpm', 'programmatic_pattern', 'perfect_rhythm',
        )
        assert report.anti_cheat.validation_score == 10

    def test_report_is_json_ready(self, engine, human_session):
        data = engine.compute_analytics(human_session).to_dict()

        restored = json.loads(json.dumps(data))
        assert restored['anti_cheat']['suspicious_flags'] == []
        assert restored['peak_performance_window']['start_position'] == 0
        assert isinstance(restored['wpm_by_position'], list)

    def test_generate_reports(self, engine, human_session, tmp_path):
        report = engine.compute_analytics(human_session)
        files = engine.generate_reports(
            report, human_session.closed_events(), ['json', 'csv', 'pdf']
        )

        assert set(files) == {'json', 'csv'}
        with open(files['json']) as f:
            assert json.load(f)['accuracy'] == 100.0
        assert files['csv'].startswith(str(tmp_path / 'reports'))

    def test_simulated_human_session(self, engine, sixty_chars):
        recorder = KeystrokeRecorder(expected_text=sixty_chars)
        recorder.replay(simulate_callbacks(sixty_chars, 'human', seed=42))
        events = recorder.session.closed_events()
        minutes = (events[-1].release_time - events[0].press_time) / 60000

        report = engine.compute_analytics(recorder.session)

        assert len(events) == 60
        assert report.wpm == pytest.approx((60 / 5) / minutes)
        assert report.accuracy == 100.0
        assert report.error_burst_count == 0
        assert report.is_suspicious is False

    def test_report_mappings_are_read_only(self, engine, human_session):
        report = engine.compute_analytics(human_session)

        with pytest.raises(TypeError):
            report.key_heatmap['E'] = 0
        with pytest.raises(TypeError):
            report.errors_by_type['other'] = 1
        assert report.key_heatmap['E'] == 6
        assert isinstance(hash(report), int)
        assert isinstance(report.to_dict()['finger_usage'], dict)

    def test_emptied_config_section(self, tmp_path, record):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text("analysis:\n  # wpm_cap: 300\nanticheat:\n")
        engine = AnalyticsEngine(str(config_path))

        report = engine.compute_analytics(record('abcdefghijkl'))

        assert report.accuracy == 100.0
        assert report.burst_wpm is not None

    def test_module_level_compute_analytics(self, human_session):
        report = compute_analytics(human_session, test_result_id=9)
        assert report.test_result_id == 9
        assert report.accuracy == 100.0


class TestCommandLine:
    """Test the analyzer entry point."""

    def test_simulated_run(self, tmp_path, capsys):
        exit_code = main([
            '--config', str(tmp_path / 'missing.yaml'),
            '--simulate', 'bot',
            '--output', str(tmp_path / 'out'),
            '--export-csv',
        ])

        assert exit_code == 0
        assert 'Suspicious: yes' in capsys.readouterr().out
        assert len(list((tmp_path / 'out').glob('typing_analysis_*.json'))) == 1
        assert len(list((tmp_path / 'out').glob('typing_events_*.csv'))) == 1

    def test_capture_file_run(self, tmp_path, capsys):
        capture = tmp_path / 'capture.json'
        capture.write_text(json.dumps({
            'expected_text': 'hi',
            'callbacks': [
                {'type': 'down', 'key': 'h', 'code': 'KeyH', 'timestamp': 0},
                {'type': 'up', 'key': 'h', 'code': 'KeyH', 'timestamp': 80},
                {'type': 'down', 'key': 'i', 'code': 'KeyI', 'timestamp': 150},
                {'type': 'up', 'key': 'i', 'code': 'KeyI', 'timestamp': 230},
            ],
        }))

        exit_code = main([
            '--config', str(tmp_path / 'missing.yaml'),
            '--input', str(capture),
            '--output', str(tmp_path / 'out'),
            '--wpm', '50',
        ])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert 'Keystrokes: 2' in out
        assert 'WPM: 50.0' in out

    def test_empty_capture(self, tmp_path):
        capture = tmp_path / 'capture.json'
        capture.write_text('[]')
        assert main(['--config', str(tmp_path / 'none.yaml'), '--input', str(capture)]) == 1
