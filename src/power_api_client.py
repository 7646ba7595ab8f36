#!/usr/bin/env python3
"""
Power Meter API Client
Fetches electricity-meter telemetry from the dashboard REST backend.

Every endpoint is a plain GET without body or auth. Most answer with the
``{success, data, count}`` envelope; the analysis endpoints may also answer
with a bare payload, which is accepted as-is.

Failures are raised as one of the PowerApiError subclasses so callers can
decide per page whether to keep the previous value or fall back to dummy data.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from power_models import (
    AlertRecord,
    AlertSummary,
    ApiEnvelope,
    LoadPatternDay,
    MonthlyReportRecord,
    PeakUsagePoint,
    PowerReading,
    UsageStatistics,
    to_number,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'http://localhost:3001'

ENDPOINTS: Dict[str, str] = {
    'last_readings': '/power/last7',
    'peak_usage': '/power/analysis/peak-usage',
    'load_pattern': '/power/analysis/load-pattern',
    'power_factor': '/power/analysis/power-factor',
    'statistics': '/power/statistics',
    'alerts': '/power/alerts',
    'alerts_summary': '/power/alerts/summary',
    'monthly_reports': '/power/reports/monthly',
    'current_month': '/power/reports/current-month',
    'hourly_history': '/power/hourly/all',
    'daily_history': '/power/daily/all',
    'monthly_history': '/power/monthly/all',
}


class PowerApiError(Exception):
    """Base class for every failure talking to the meter backend."""

    def __init__(self, message: str, endpoint: Optional[str] = None):
        super().__init__(message)
        self.endpoint = endpoint


class PowerApiConnectionError(PowerApiError):
    """Network failure or timeout."""


class PowerApiStatusError(PowerApiError):
    """Backend answered with a non-2xx status."""

    def __init__(self, status: int, endpoint: Optional[str] = None):
        super().__init__(f"HTTP error! status: {status}", endpoint)
        self.status = status


class PowerApiEnvelopeError(PowerApiError):
    """Body is not JSON, success is false, or data is missing."""


class PowerApiClient:
    """Async client for the power telemetry endpoints"""

    def __init__(self, config: Dict[str, Any],
                 session_factory: Optional[Callable[..., Any]] = None):
        """
        Initialize the API client.

        Args:
            config: Full dashboard configuration dict
            session_factory: Callable returning an aiohttp-compatible session;
                defaults to aiohttp.ClientSession
        """
        api_config = config.get('power_api', {}) or {}
        self.base_url = str(api_config.get('base_url', DEFAULT_BASE_URL)).rstrip('/')
        timeout_seconds = api_config.get('timeout_seconds', 30)
        # None keeps aiohttp's own default timeout
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds) if timeout_seconds else None
        self._session_factory = session_factory or aiohttp.ClientSession

        self.request_count = 0
        self.error_count = 0

        logger.info(f"Power API client initialized (base_url: {self.base_url})")

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET ``path`` and decode the JSON body.

        Raises:
            PowerApiConnectionError: network failure or timeout
            PowerApiStatusError: non-2xx response
            PowerApiEnvelopeError: body is not valid JSON
        """
        url = self.url_for(path)
        self.request_count += 1
        session_kwargs = {'timeout': self.timeout} if self.timeout else {}
        try:
            async with self._session_factory(**session_kwargs) as session:
                async with session.get(url, params=params) as response:
                    if not 200 <= response.status < 300:
                        raise PowerApiStatusError(response.status, path)
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError as e:
                        raise PowerApiEnvelopeError(f"Invalid JSON from {path}: {e}", path) from e
        except PowerApiError:
            self.error_count += 1
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.error_count += 1
            raise PowerApiConnectionError(f"Request to {url} failed: {e!r}", path) from e

        logger.debug(f"GET {path} -> {type(payload).__name__}")
        return payload

    async def fetch_envelope(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiEnvelope:
        """GET ``path`` and validate the {success, data, count} envelope."""
        payload = await self.get_json(path, params)
        return self.parse_envelope(payload, path)

    @staticmethod
    def parse_envelope(payload: Any, path: Optional[str] = None) -> ApiEnvelope:
        if not isinstance(payload, dict) or 'success' not in payload:
            raise PowerApiEnvelopeError(f"Malformed envelope from {path}", path)
        if not payload.get('success'):
            message = payload.get('message') or 'success is false'
            raise PowerApiEnvelopeError(f"Request to {path} unsuccessful: {message}", path)
        if payload.get('data') is None:
            raise PowerApiEnvelopeError(f"Envelope from {path} has no data", path)
        count = payload.get('count')
        return ApiEnvelope(
            success=True,
            data=payload['data'],
            count=int(to_number(count)) if count is not None else None,
            message=payload.get('message'),
        )

    async def _fetch_payload(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Data of an endpoint that may answer either enveloped or bare."""
        payload = await self.get_json(path, params)
        if isinstance(payload, dict) and 'success' in payload:
            return self.parse_envelope(payload, path).data
        return payload

    # ------------------------------------------------------------------
    # Realtime
    # ------------------------------------------------------------------

    async def fetch_last_readings(self) -> List[PowerReading]:
        """Latest raw samples (the backend returns up to seven)."""
        envelope = await self.fetch_envelope(ENDPOINTS['last_readings'])
        readings = [PowerReading.from_api(item) for item in envelope.items if isinstance(item, dict)]
        logger.debug(f"Received {len(readings)} latest readings")
        return readings

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def fetch_peak_usage(self) -> List[PeakUsagePoint]:
        data = await self._fetch_payload(ENDPOINTS['peak_usage'])
        if not isinstance(data, list):
            raise PowerApiEnvelopeError("Peak usage payload is not a list", ENDPOINTS['peak_usage'])
        return [PeakUsagePoint.from_api(item) for item in data if isinstance(item, dict)]

    async def fetch_load_pattern(self) -> List[LoadPatternDay]:
        data = await self._fetch_payload(ENDPOINTS['load_pattern'])
        if not isinstance(data, list):
            raise PowerApiEnvelopeError("Load pattern payload is not a list", ENDPOINTS['load_pattern'])
        return [LoadPatternDay.from_api(item) for item in data if isinstance(item, dict)]

    async def fetch_power_factor(self) -> Optional[float]:
        """Average power factor, or None when the backend has no value."""
        data = await self._fetch_payload(ENDPOINTS['power_factor'])
        if not isinstance(data, dict) or not data.get('power_factor'):
            return None
        return to_number(data['power_factor']) or None

    async def fetch_statistics(self, days: Optional[int] = None,
                               default_peak_hour: str = "00:00") -> UsageStatistics:
        params = {'days': days} if days else None
        data = await self._fetch_payload(ENDPOINTS['statistics'], params)
        if not isinstance(data, dict):
            raise PowerApiEnvelopeError("Statistics payload is not an object", ENDPOINTS['statistics'])
        return UsageStatistics.from_api(data, default_peak_hour)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    async def fetch_alerts(self) -> List[AlertRecord]:
        envelope = await self.fetch_envelope(ENDPOINTS['alerts'])
        return [AlertRecord.from_api(item) for item in envelope.items if isinstance(item, dict)]

    async def fetch_alert_summary(self) -> AlertSummary:
        envelope = await self.fetch_envelope(ENDPOINTS['alerts_summary'])
        if not isinstance(envelope.data, dict):
            raise PowerApiEnvelopeError("Alert summary is not an object", ENDPOINTS['alerts_summary'])
        if envelope.data.get('by_type') is not None and not isinstance(envelope.data['by_type'], dict):
            raise PowerApiEnvelopeError("Alert summary by_type is not an object", ENDPOINTS['alerts_summary'])
        return AlertSummary.from_api(envelope.data)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def fetch_monthly_reports(self) -> List[MonthlyReportRecord]:
        envelope = await self.fetch_envelope(ENDPOINTS['monthly_reports'])
        if not isinstance(envelope.data, list):
            raise PowerApiEnvelopeError("Monthly reports is not a list", ENDPOINTS['monthly_reports'])
        return [MonthlyReportRecord.from_api(item) for item in envelope.data if isinstance(item, dict)]

    async def fetch_current_month_report(self) -> MonthlyReportRecord:
        envelope = await self.fetch_envelope(ENDPOINTS['current_month'])
        if not isinstance(envelope.data, dict):
            raise PowerApiEnvelopeError("Current month report is not an object", ENDPOINTS['current_month'])
        return MonthlyReportRecord.from_api(envelope.data)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def fetch_history(self, granularity: str) -> ApiEnvelope:
        """Full history envelope for ``hourly``, ``daily`` or ``monthly``."""
        key = f"{granularity.lower()}_history"
        if key not in ENDPOINTS:
            raise ValueError(f"Unknown history granularity: {granularity}")
        envelope = await self.fetch_envelope(ENDPOINTS[key])
        if not isinstance(envelope.data, list):
            raise PowerApiEnvelopeError(f"{granularity} history is not a list", ENDPOINTS[key])
        return envelope

    def get_stats(self) -> Dict[str, Any]:
        return {
            'base_url': self.base_url,
            'request_count': self.request_count,
            'error_count': self.error_count,
        }
