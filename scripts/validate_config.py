#!/usr/bin/env python3
"""
Configuration Validation Script for the Meter Dashboard

Checks config/dashboard_config.yaml for:
1. Valid YAML syntax
2. Known sections with the expected property types
3. Sensible value ranges (positive intervals, buffer size, exchange rate)
4. Ascending energy thresholds per period
5. Sections the dashboard does not read (reported as warnings)

Every section is optional because the dashboard fills missing keys with
defaults; a property that is present must still be well-formed.

Usage:
    python scripts/validate_config.py [config_file_path]

If no path provided, defaults to config/dashboard_config.yaml
"""

import sys
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


# ANSI color codes for terminal output
class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    BOLD = '\033[1m'
    END = '\033[0m'


NUMBER = (int, float)
INTERVAL = {"type": NUMBER, "min": 0.1}

CONFIG_SCHEMA = {
    "power_api": {
        "base_url": {"type": str},
        "timeout_seconds": {"type": NUMBER + (type(None),), "min": 0.1},
    },
    "realtime": {
        "buffer_size": {"type": int, "min": 1, "max": 100},
        "refresh_interval_seconds": INTERVAL,
        "advance_interval_seconds": INTERVAL,
    },
    "analysis": {
        "statistics_days": {"type": int, "min": 1},
        "savings_rate_usd_per_kwh": {"type": NUMBER, "min": 0},
        "refresh_interval_seconds": {"type": NUMBER, "min": 0},
    },
    "history": {
        "default_filter": {"type": str, "choices": ["hourly", "daily", "monthly"]},
        "statistics_interval_seconds": INTERVAL,
        "daily_usage_interval_seconds": INTERVAL,
        "daily_usage_window": {"type": int, "min": 1},
    },
    "alerts": {
        "refresh_interval_seconds": INTERVAL,
    },
    "reports": {
        "refresh_interval_seconds": INTERVAL,
    },
    "electricity_tariff": {
        "tariff_class": {"type": str},
        "currency": {"type": str},
        "usd_exchange_rate": {"type": NUMBER, "min": 0.0001},
        "rates": {"type": dict},
    },
    "energy_thresholds": {
        "hourly": {"type": dict},
        "daily": {"type": dict},
        "monthly": {"type": dict},
    },
    "logging": {
        "level": {"type": str, "choices": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "file": {"type": str},
    },
    "dashboard": {
        "render_interval_seconds": INTERVAL,
    },
}

THRESHOLD_KEYS = ["very_low", "low", "normal", "high"]


def load_yaml_file(file_path: Path) -> Tuple[Optional[Dict], List[str]]:
    """Load and parse YAML file, return (config, errors)"""
    errors = []
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        errors.append(f"Config file not found: {file_path}")
        return None, errors
    except yaml.YAMLError as e:
        errors.append(f"YAML syntax error: {e}")
        return None, errors

    if not isinstance(config, dict):
        errors.append(f"Config file must contain a dictionary, got {type(config).__name__}")
        return None, errors
    return config, errors


def validate_property(value: Any, prop_schema: Dict, property_path: str) -> Optional[str]:
    """Return an error message if value violates its schema entry"""
    expected_types = prop_schema["type"]
    if not isinstance(expected_types, tuple):
        expected_types = (expected_types,)
    # bool is an int subclass; never accept it for numbers
    if isinstance(value, bool) or not isinstance(value, expected_types):
        expected_names = " or ".join(t.__name__ for t in expected_types)
        return f"{property_path}: Expected type {expected_names}, got {type(value).__name__}"

    if isinstance(value, NUMBER):
        min_val = prop_schema.get("min")
        max_val = prop_schema.get("max")
        if min_val is not None and value < min_val:
            return f"{property_path}: Value {value} is below minimum {min_val}"
        if max_val is not None and value > max_val:
            return f"{property_path}: Value {value} exceeds maximum {max_val}"

    choices = prop_schema.get("choices")
    if choices and str(value).lower() not in [c.lower() for c in choices]:
        return f"{property_path}: Value '{value}' not in allowed choices: {choices}"
    return None


def validate_section(config: Dict, section_name: str, errors: List[str], warnings: List[str]):
    """Validate a config section against its schema"""
    if section_name not in config or config[section_name] is None:
        return

    section = config[section_name]
    if not isinstance(section, dict):
        errors.append(f"Section '{section_name}' must be a dictionary, got {type(section).__name__}")
        return

    properties = CONFIG_SCHEMA[section_name]
    for prop_name, value in section.items():
        property_path = f"{section_name}.{prop_name}"
        if prop_name not in properties:
            warnings.append(f"Unknown property '{property_path}' is ignored by the dashboard")
            continue
        error = validate_property(value, properties[prop_name], property_path)
        if error:
            errors.append(error)


def validate_custom_rules(config: Dict, errors: List[str], warnings: List[str]):
    """Apply cross-property rules"""

    # Rule 1: energy thresholds must be numeric and strictly ascending per period
    thresholds = config.get("energy_thresholds") or {}
    if isinstance(thresholds, dict):
        for period, bounds in thresholds.items():
            if not isinstance(bounds, dict):
                continue
            values = [bounds[k] for k in THRESHOLD_KEYS if k in bounds]
            if any(isinstance(v, bool) or not isinstance(v, NUMBER) for v in values):
                errors.append(f"energy_thresholds.{period}: thresholds must be numbers")
                continue
            if values != sorted(values) or len(set(values)) != len(values):
                errors.append(f"energy_thresholds.{period}: thresholds must ascend "
                              f"{' < '.join(THRESHOLD_KEYS)}")

    # Rule 2: focus should advance at least once per refresh
    realtime = config.get("realtime") or {}
    if isinstance(realtime, dict):
        refresh = realtime.get("refresh_interval_seconds")
        advance = realtime.get("advance_interval_seconds")
        if isinstance(refresh, NUMBER) and isinstance(advance, NUMBER) and advance > refresh:
            warnings.append("realtime.advance_interval_seconds > refresh_interval_seconds: "
                            "some samples will never be focused")

    # Rule 3: very short polling intervals hammer the backend
    for section_name in ("alerts", "reports", "realtime"):
        section = config.get(section_name) or {}
        if isinstance(section, dict):
            interval = section.get("refresh_interval_seconds")
            if isinstance(interval, NUMBER) and 0 < interval < 1:
                warnings.append(f"{section_name}.refresh_interval_seconds < 1: May cause excessive API calls")

    # Rule 4: tariff class must have a rate
    tariff = config.get("electricity_tariff") or {}
    if isinstance(tariff, dict) and "tariff_class" in tariff:
        known = {"R1_900VA", "R1_1300VA", "R1_2200VA", "R2_3500VA"}
        rates = tariff.get("rates")
        if isinstance(rates, dict):
            known.update(rates.keys())
        if tariff["tariff_class"] not in known:
            warnings.append(f"electricity_tariff.tariff_class '{tariff['tariff_class']}' has no rate, "
                            f"the default class will be used")


def validate_config(config: Dict) -> Tuple[List[str], List[str]]:
    """Validate a parsed config, return (errors, warnings)"""
    errors: List[str] = []
    warnings: List[str] = []

    for section_name in config:
        if section_name not in CONFIG_SCHEMA:
            warnings.append(f"Unknown section '{section_name}' is ignored by the dashboard")

    for section_name in CONFIG_SCHEMA:
        validate_section(config, section_name, errors, warnings)

    validate_custom_rules(config, errors, warnings)
    return errors, warnings


def print_results(errors: List[str], warnings: List[str], config_path: Path) -> int:
    """Print validation results with colors"""
    print(f"\n{Colors.BOLD}Config Validation Report: {config_path}{Colors.END}\n")
    print("=" * 80)

    if errors:
        print(f"\n{Colors.RED}{Colors.BOLD}ERRORS ({len(errors)}):{Colors.END}")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    if warnings:
        print(f"\n{Colors.YELLOW}{Colors.BOLD}WARNINGS ({len(warnings)}):{Colors.END}")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning}")

    print("\n" + "=" * 80)

    if not errors and not warnings:
        print(f"{Colors.GREEN}{Colors.BOLD}Configuration is valid!{Colors.END}\n")
        return 0
    elif not errors:
        print(f"{Colors.YELLOW}{Colors.BOLD}Configuration is valid but has warnings{Colors.END}\n")
        return 0
    else:
        print(f"{Colors.RED}{Colors.BOLD}Configuration has errors and must be fixed{Colors.END}\n")
        return 1


def main():
    """Main validation entry point"""
    if len(sys.argv) > 1:
        config_path = Path(sys.argv[1])
    else:
        script_dir = Path(__file__).parent
        config_path = script_dir.parent / "config" / "dashboard_config.yaml"

    print(f"\n{Colors.BLUE}Validating config: {config_path}{Colors.END}")

    config, errors = load_yaml_file(config_path)
    if config is None:
        return print_results(errors, [], config_path)

    errors, warnings = validate_config(config)
    return print_results(errors, warnings, config_path)


if __name__ == "__main__":
    sys.exit(main())
