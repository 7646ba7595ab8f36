"""
conftest.py

Shared fixtures for the dashboard tests: src/ on sys.path, temporary YAML
configs, a mocked API client and a mocked aiohttp session factory.
"""

from pathlib import Path
import sys

# Ensure project `src/` and `scripts/` are on sys.path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

import tempfile
import os
import yaml
import pytest
from unittest.mock import AsyncMock, MagicMock, Mock

from dashboard_config import apply_defaults
from power_api_client import PowerApiClient


@pytest.fixture
def dashboard_config():
	"""Complete default configuration, as load_config() returns it."""
	return apply_defaults({})


@pytest.fixture
def fast_config():
	"""Configuration with sub-second intervals for lifecycle tests."""
	return apply_defaults({
		'realtime': {
			'refresh_interval_seconds': 0.05,
			'advance_interval_seconds': 0.03,
		},
		'history': {
			'statistics_interval_seconds': 0.05,
			'daily_usage_interval_seconds': 0.05,
		},
		'alerts': {'refresh_interval_seconds': 0.05},
		'reports': {'refresh_interval_seconds': 0.05},
		'dashboard': {'render_interval_seconds': 0.05},
	})


@pytest.fixture
def api_client():
	"""
	PowerApiClient double.

	Every fetch_* coroutine is an AsyncMock; tests set return_value or
	side_effect per endpoint.
	"""
	client = MagicMock(spec=PowerApiClient)
	client.get_stats.return_value = {'base_url': 'http://test', 'request_count': 0, 'error_count': 0}
	return client


@pytest.fixture
def mock_http():
	"""
	Factory for a mocked aiohttp.ClientSession.

	Returns a function taking the JSON payload (and optionally status,
	json_error or get_error) and returning (session_factory, session).
	"""
	def _build(payload=None, status=200, json_error=None, get_error=None):
		mock_response = AsyncMock()
		mock_response.status = status
		if json_error is not None:
			mock_response.json = AsyncMock(side_effect=json_error)
		else:
			mock_response.json = AsyncMock(return_value=payload)

		mock_ctx = AsyncMock()
		mock_ctx.__aenter__ = AsyncMock(return_value=mock_response)
		mock_ctx.__aexit__ = AsyncMock(return_value=None)

		mock_session = AsyncMock()
		if get_error is not None:
			mock_session.get = Mock(side_effect=get_error)
		else:
			mock_session.get = Mock(return_value=mock_ctx)
		mock_session.__aenter__ = AsyncMock(return_value=mock_session)
		mock_session.__aexit__ = AsyncMock(return_value=None)

		session_factory = Mock(return_value=mock_session)
		return session_factory, mock_session

	return _build


@pytest.fixture
def isolated_config():
	"""
	Create an isolated test configuration file with standard test settings.

	Yields:
		str: Path to temporary config file

	Cleanup:
		Automatically removes the config file after test completion
	"""
	test_config = {
		'power_api': {
			'base_url': 'http://meter.local:3001',
			'timeout_seconds': 10
		},
		'realtime': {
			'buffer_size': 5,
			'refresh_interval_seconds': 5,
			'advance_interval_seconds': 3
		},
		'electricity_tariff': {
			'tariff_class': 'R2_3500VA',
			'usd_exchange_rate': 16000
		},
		'logging': {
			'level': 'DEBUG'
		}
	}

	config_file = tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False)
	yaml.dump(test_config, config_file)
	config_file.close()

	try:
		yield config_file.name
	finally:
		try:
			os.unlink(config_file.name)
		except OSError:
			pass


@pytest.fixture
def custom_config():
	"""
	Fixture that provides a factory function for creating custom test configuration files.

	Returns:
		function: Factory function that accepts config dict (or raw YAML text)
		and returns config path

	Example:
		def test_with_custom_config(custom_config):
			config_path = custom_config({
				'electricity_tariff': {'tariff_class': 'R2_3500VA'}
			})
	"""
	created_files = []

	def _create_config(config_dict):
		config_file = tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False)
		if isinstance(config_dict, str):
			config_file.write(config_dict)
		else:
			yaml.dump(config_dict, config_file)
		config_file.close()
		created_files.append(config_file.name)
		return config_file.name

	yield _create_config

	for file_path in created_files:
		try:
			os.unlink(file_path)
		except OSError:
			pass


def reading_payload(record_id, voltage=220.0, current=2.0, power=440.0, energy=0.5,
					frequency=50.0, pf=0.9, created_at='2025-01-15T10:00:00Z'):
	"""Raw /power/last7 record with the backend's column names."""
	return {
		'id': record_id,
		'tegangan': voltage,
		'arus': current,
		'daya_watt': power,
		'energi_kwh': energy,
		'frekuensi': frequency,
		'pf': pf,
		'created_at': created_at,
	}
