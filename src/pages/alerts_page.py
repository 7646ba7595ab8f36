#!/usr/bin/env python3
"""
Energy Alerts page.

Polls the alert list and the per-severity summary every 30 seconds. Each one
is replaced only when the backend answers successfully, so a failed poll
keeps showing the last known alerts.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pages.base_page import DashboardPage
from periodic_task import PeriodicTask
from power_api_client import PowerApiClient, PowerApiError
from power_models import AlertRecord, AlertSeverity, AlertSummary

logger = logging.getLogger(__name__)

SEVERITY_FILTERS = ('all', 'critical', 'warning', 'info')

TYPE_LABELS: Dict[str, str] = {
    'high_consumption': 'High Consumption',
    'low_power_factor': 'Low Power Factor',
    'unusual_pattern': 'Unusual Pattern',
    'peak_usage': 'Peak Usage',
}

SEVERITY_MARKERS: Dict[AlertSeverity, str] = {
    AlertSeverity.CRITICAL: '!!',
    AlertSeverity.WARNING: '! ',
    AlertSeverity.INFO: 'i ',
}


def type_label(alert_type: str) -> str:
    """Readable label for an alert type; unknown types pass through."""
    return TYPE_LABELS.get(alert_type, alert_type)


class AlertsPage(DashboardPage):
    """Consumption alerts with a severity filter"""

    name = 'alerts'

    def __init__(self, api_client: PowerApiClient, config: Dict[str, Any]):
        super().__init__(api_client, config)
        alerts_config = config.get('alerts', {})
        self.refresh_interval_seconds = float(alerts_config.get('refresh_interval_seconds', 30))

        self.alerts: List[AlertRecord] = []
        self.summary: Optional[AlertSummary] = None
        self.severity_filter = 'all'
        self.loading = True

    def _build_tasks(self) -> List[PeriodicTask]:
        return [PeriodicTask('alerts-refresh', self.refresh_interval_seconds, self.load)]

    async def load(self):
        await self.fetch_alerts()
        await self.fetch_summary()

    async def fetch_alerts(self):
        try:
            self.alerts = await self.api.fetch_alerts()
        except PowerApiError as e:
            logger.error(f"Error fetching alerts: {e}")
        finally:
            self.loading = False

    async def fetch_summary(self):
        try:
            self.summary = await self.api.fetch_alert_summary()
        except PowerApiError as e:
            logger.error(f"Error fetching summary: {e}")

    def set_filter(self, severity: Union[AlertSeverity, str]):
        value = severity.value if isinstance(severity, AlertSeverity) else str(severity).lower()
        if value not in SEVERITY_FILTERS:
            raise ValueError(f"Unknown severity filter: {severity}")
        self.severity_filter = value

    @property
    def filtered_alerts(self) -> List[AlertRecord]:
        if self.severity_filter == 'all':
            return list(self.alerts)
        return [alert for alert in self.alerts if alert.severity.value == self.severity_filter]

    def render(self) -> List[str]:
        if self.loading:
            return ["Energy Alerts", "Loading alerts..."]

        lines = ["Energy Alerts"]
        if self.summary is not None:
            s = self.summary
            lines.append(f"  Total Alerts: {s.total} | Critical: {s.critical} | Warning: {s.warning} "
                         f"| Info: {s.info} | Unread: {s.unread}")

        lines.append("  Filter: " + " ".join(
            f"[{f.capitalize()}]" if f == self.severity_filter else f.capitalize() for f in SEVERITY_FILTERS))

        alerts = self.filtered_alerts
        if not alerts:
            lines.append("  No alerts in this category")
            return lines

        for alert in alerts:
            date = alert.date.strftime("%d %b %Y") if alert.date else "-"
            lines.append(f"  {SEVERITY_MARKERS[alert.severity]} {type_label(alert.type)} ({date})"
                         + ("" if alert.is_read else " *new*"))
            lines.append(f"     {alert.message}")
            lines.append(f"     Value: {alert.value:.2f} | Threshold: {alert.threshold:.2f}")
        return lines
