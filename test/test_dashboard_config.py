#!/usr/bin/env python3
"""
Configuration loading and validation tests
"""

import unittest
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))
sys.path.insert(0, str(Path(__file__).parent.parent / 'scripts'))

from dashboard_config import DEFAULT_CONFIG_PATH, DEFAULTS, apply_defaults, load_config
from validate_config import load_yaml_file, validate_config


class TestApplyDefaults(unittest.TestCase):
    """Default filling for partial configurations"""

    def test_empty_config_gets_every_section(self):
        config = apply_defaults({})
        self.assertEqual(set(config), set(DEFAULTS))
        self.assertEqual(config['realtime']['buffer_size'], 7)
        self.assertEqual(config['power_api']['timeout_seconds'], 30)

    def test_existing_values_kept(self):
        config = apply_defaults({'realtime': {'buffer_size': 3}})
        self.assertEqual(config['realtime']['buffer_size'], 3)
        self.assertEqual(config['realtime']['refresh_interval_seconds'], 5)

    def test_non_mapping_section_replaced(self):
        config = apply_defaults({'alerts': 'every minute'})
        self.assertEqual(config['alerts']['refresh_interval_seconds'], 30)

    def test_defaults_not_shared_between_calls(self):
        first = apply_defaults({})
        first['history']['daily_usage_window'] = 1
        self.assertEqual(apply_defaults({})['history']['daily_usage_window'], 30)

    def test_unknown_sections_preserved(self):
        config = apply_defaults({'energy_thresholds': {'daily': {'low': 9}}})
        self.assertEqual(config['energy_thresholds'], {'daily': {'low': 9}})


class TestLoadConfig:

    def test_loads_yaml(self, isolated_config):
        config = load_config(isolated_config)
        assert config['power_api']['base_url'] == 'http://meter.local:3001'
        assert config['realtime']['buffer_size'] == 5
        assert config['electricity_tariff']['tariff_class'] == 'R2_3500VA'
        assert config['alerts']['refresh_interval_seconds'] == 30

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / 'missing.yaml')
        assert config == apply_defaults({})

    def test_invalid_yaml_uses_defaults(self, custom_config):
        path = custom_config("power_api: [unclosed\n")
        assert load_config(path)['power_api']['base_url'] == 'http://localhost:3001'

    def test_non_mapping_yaml_uses_defaults(self, custom_config):
        path = custom_config("- just\n- a list\n")
        assert load_config(path)['reports']['refresh_interval_seconds'] == 300

    def test_shipped_config_is_complete(self):
        config = load_config(DEFAULT_CONFIG_PATH)
        assert config['electricity_tariff']['rates']['R1_2200VA'] == pytest.approx(1444.70)
        assert config['energy_thresholds']['daily']['low'] == 8


class TestValidateConfig:

    def test_shipped_config_is_valid(self):
        config, errors = load_yaml_file(DEFAULT_CONFIG_PATH)
        assert errors == []
        assert validate_config(config) == ([], [])

    def test_empty_config_is_valid(self):
        assert validate_config({}) == ([], [])

    def test_type_and_range_errors(self):
        errors, _ = validate_config({
            'realtime': {'buffer_size': 0, 'refresh_interval_seconds': 'fast'},
            'logging': {'level': 'VERBOSE'},
        })
        assert any('realtime.buffer_size' in e for e in errors)
        assert any('realtime.refresh_interval_seconds' in e for e in errors)
        assert any('logging.level' in e for e in errors)

    def test_boolean_is_not_a_number(self):
        errors, _ = validate_config({'alerts': {'refresh_interval_seconds': True}})
        assert errors

    def test_thresholds_must_ascend(self):
        errors, _ = validate_config({'energy_thresholds': {'daily': {'very_low': 3, 'low': 2}}})
        assert errors == ["energy_thresholds.daily: thresholds must ascend very_low < low < normal < high"]

    def test_warnings(self):
        errors, warnings = validate_config({
            'inverter': {},
            'realtime': {'refresh_interval_seconds': 2, 'advance_interval_seconds': 4},
            'electricity_tariff': {'tariff_class': 'Z1'},
        })
        assert errors == []
        assert len(warnings) == 3

    def test_missing_file(self, tmp_path):
        config, errors = load_yaml_file(tmp_path / 'nope.yaml')
        assert config is None
        assert 'not found' in errors[0]
