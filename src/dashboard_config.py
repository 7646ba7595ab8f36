#!/usr/bin/env python3
"""
Dashboard configuration loading.

Reads the YAML config and fills every missing key with its default, so a
partial (or missing) file still yields a complete, usable configuration.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

project_root = Path(__file__).parent.parent
DEFAULT_CONFIG_PATH = project_root / "config" / "dashboard_config.yaml"

DEFAULTS: Dict[str, Dict[str, Any]] = {
    'power_api': {
        'base_url': 'http://localhost:3001',
        'timeout_seconds': 30,
    },
    'realtime': {
        'buffer_size': 7,
        'refresh_interval_seconds': 5,
        'advance_interval_seconds': 3,
    },
    'analysis': {
        'statistics_days': 30,
        'savings_rate_usd_per_kwh': 0.15,
        'refresh_interval_seconds': 0,  # 0 = load once
    },
    'history': {
        'default_filter': 'daily',
        'statistics_interval_seconds': 60,
        'daily_usage_interval_seconds': 300,
        'daily_usage_window': 30,
    },
    'alerts': {
        'refresh_interval_seconds': 30,
    },
    'reports': {
        'refresh_interval_seconds': 300,
    },
    'electricity_tariff': {
        'tariff_class': 'R1_2200VA',
        'currency': 'IDR',
        'usd_exchange_rate': 15500,
    },
    'logging': {
        'level': 'INFO',
        'file': 'meter_dashboard.log',
    },
    'dashboard': {
        'render_interval_seconds': 10,
    },
}


def apply_defaults(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return ``config`` with every missing section/key set to its default."""
    config = dict(config or {})
    for section, defaults in DEFAULTS.items():
        current = config.get(section)
        if not isinstance(current, dict):
            if current is not None:
                logger.warning(f"Config section '{section}' is not a mapping, using defaults")
            current = {}
        current = dict(current)
        for key, value in defaults.items():
            current.setdefault(key, copy.deepcopy(value))
        config[section] = current
    return config


def load_config(config_path: Union[str, Path, None] = None) -> Dict[str, Any]:
    """Load configuration from file, falling back to defaults on any error"""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    try:
        with open(path, 'r') as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            logger.error(f"Configuration in {path} is not a mapping, using defaults")
            raw = {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load configuration from {path}: {e}")
        raw = {}

    return apply_defaults(raw)
