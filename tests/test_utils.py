# ABOUTME: Unit tests for configuration, capture loading and utility functions
import json

import pandas as pd
import pytest

from keystroke_analytics.models import KeystrokeEvent
from keystroke_analytics.utils import (
    CaptureCallback, ConfigManager, DataManager,
    calculate_wpm, clamp, population_std, population_variance, round_half_up
)


class TestConfigManager:
    """Test configuration management."""

    def test_default_config(self):
        """Defaults apply when no file is given."""
        config = ConfigManager(None)
        assert config.get('anticheat.min_keystrokes_for_analysis') == 20
        assert config.get('analysis.wpm_cap') == 300
        assert config.get('output.reports_directory') == './reports'

    def test_partial_file_merges_over_defaults(self, tmp_path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text("""
anticheat:
  flag_penalty: 10
output:
  reports_directory: /tmp/somewhere
""")
        config = ConfigManager(str(config_path))
        assert config.get('anticheat.flag_penalty') == 10
        # Untouched keys of the same section survive
        assert config.get('anticheat.synthetic_penalty') == 30
        assert config.get('output.log_level') == 'INFO'
        assert config.get('output.reports_directory') == '/tmp/somewhere'

    def test_missing_config_file(self):
        """Test behavior with missing config file."""
        config = ConfigManager('nonexistent.yaml')
        assert config.get('analysis.burst_window_ms') == 5000
        assert config.get('race.certification_margin') == 1.25

    def test_unparseable_config_file(self, tmp_path):
        config_path = tmp_path / 'broken.yaml'
        config_path.write_text("analysis: [1, 2\n")
        config = ConfigManager(str(config_path))
        assert config.get('analysis.min_window_events') == 5

    def test_get_with_default(self):
        config = ConfigManager(None)
        assert config.get('nonexistent.key', 'default') == 'default'
        assert config.get('analysis.nonexistent') is None

    def test_emptied_section_keeps_defaults(self, tmp_path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text("analysis:\n  # wpm_cap: 300\nanticheat:\nrace: 5\n")
        config = ConfigManager(str(config_path))

        assert config.get('analysis.flight_outlier_ms') == 1000
        assert config.section('anticheat')['flag_penalty'] == 20
        assert config.get('race.certification_margin') == 1.25

    def test_section_is_a_copy(self):
        config = ConfigManager(None)
        section = config.section('anticheat')
        section['flag_penalty'] = 99
        assert config.get('anticheat.flag_penalty') == 20
        assert config.section('missing') == {}


class TestDataManager:
    """Test capture loading and report writing."""

    def test_load_json_capture_with_text(self, tmp_path):
        path = tmp_path / 'capture.json'
        path.write_text(json.dumps({
            'expected_text': 'hi',
            'callbacks': [
                {'type': 'down', 'key': 'h', 'code': 'KeyH', 'timestamp': 0},
                {'type': 'up', 'key': 'h', 'code': 'KeyH', 'timestamp': 80, 'isCorrect': True},
                {'type': 'down', 'key': 'i', 'code': 'KeyI', 'timestamp': 150},
                {'type': 'up', 'key': 'i', 'code': 'KeyI', 'timestamp': 230,
                 'isCorrect': False, 'expected': None, 'position': 1},
            ],
        }))

        callbacks, expected_text = DataManager(tmp_path).load_capture(path)

        assert expected_text == 'hi'
        assert len(callbacks) == 4
        assert callbacks[0] == CaptureCallback('down', 'h', 'KeyH', 0.0)
        assert callbacks[1].has_expected is False
        assert callbacks[3].is_correct is False
        # An explicit null is still an override
        assert callbacks[3].has_expected is True
        assert callbacks[3].expected is None
        assert callbacks[3].position == 1

    def test_load_json_list_capture(self, tmp_path):
        path = tmp_path / 'capture.json'
        path.write_text(json.dumps([
            {'type': 'down', 'key': 'a', 'code': 'KeyA', 'timestamp': 10},
            {'type': 'up', 'key': 'a', 'code': 'KeyA', 'timestamp': 60, 'is_correct': 'false'},
        ]))

        callbacks, expected_text = DataManager(tmp_path).load_capture(path)

        assert expected_text is None
        assert callbacks[1].is_correct is False

    def test_load_csv_capture(self, tmp_path):
        path = tmp_path / 'capture.csv'
        path.write_text(
            "type,key,code,timestamp,isCorrect,expected,position\n"
            "down,a,KeyA,0,,,\n"
            "up,a,KeyA,80,True,a,0\n"
        )

        callbacks, _ = DataManager(tmp_path).load_capture(path)

        assert callbacks[0].kind == 'down'
        assert callbacks[0].has_expected is False
        assert callbacks[0].position is None
        assert callbacks[1].is_correct is True
        assert callbacks[1].expected == 'a'
        assert callbacks[1].has_expected is True
        assert callbacks[1].position == 0
        assert callbacks[1].timestamp == 80.0

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / 'capture.txt'
        path.write_text('nothing')
        with pytest.raises(ValueError):
            DataManager(tmp_path).load_capture(path)

    def test_invalid_callback_type(self, tmp_path):
        path = tmp_path / 'capture.json'
        path.write_text(json.dumps([{'type': 'press', 'key': 'a', 'timestamp': 0}]))
        with pytest.raises(ValueError, match='Invalid callback type'):
            DataManager(tmp_path).load_capture(path)

    def test_save_report(self, tmp_path):
        data_manager = DataManager(tmp_path / 'reports')
        path = data_manager.save_report({'wpm': 61.5}, timestamp='20240101_120000')

        assert path.name == 'typing_analysis_20240101_120000.json'
        assert json.loads(path.read_text()) == {'wpm': 61.5}

    def test_export_events_csv(self, tmp_path):
        events = [
            KeystrokeEvent('a', 'KeyA', 0.0, 50.0, 50.0, None, True, 'a', 0, 'Left Pinky', 'left'),
            KeystrokeEvent('b', 'KeyB', 100.0, 150.0, 50.0, 50.0, False, 'c', 1, 'Left Index', 'left'),
        ]
        path = DataManager(tmp_path).export_events_csv(events, timestamp='t')

        df = pd.read_csv(path)
        assert list(df['key']) == ['a', 'b']
        assert list(df['is_correct']) == [True, False]
        assert df['dwell_time'].sum() == 100.0


class TestUtilityFunctions:
    """Test utility functions."""

    def test_wpm_calculation(self):
        # 25 characters (5 words) in one minute
        assert calculate_wpm(25, 60000) == 5.0
        assert calculate_wpm(30, 30000) == pytest.approx(12.0)

    def test_wpm_without_duration(self):
        assert calculate_wpm(10, 0) is None
        assert calculate_wpm(10, -5) is None

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2
        assert round_half_up(-2.5) == -2

    def test_clamp(self):
        assert clamp(-4) == 0
        assert clamp(140) == 100
        assert clamp(42.5) == 42.5

    def test_population_std(self):
        assert population_std([]) is None
        assert population_std([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    def test_population_variance(self):
        assert population_variance([]) is None
        assert population_variance([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(4.0)
