#!/usr/bin/env python3
"""
Real-time Monitoring page.

Fetches the latest seven samples every 5 seconds and auto-cycles the
displayed record every 3 seconds. Gauges and metric cards show the focused
record; the trend chart and table show the whole window with the focused
point highlighted.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from cyclic_sampler import CyclicSampler
from energy_metrics import (
    energy_status,
    frequency_status,
    gauge_percentage,
    power_factor_status,
)
from pages.base_page import DashboardPage
from power_api_client import PowerApiClient
from power_models import PowerReading
from utils.formatting import format_clock, format_datetime, format_time_label

logger = logging.getLogger(__name__)

# (title, unit, max) per gauge
GAUGES = (
    ('Voltage', 'V', 250.0),
    ('Current', 'A', 10.0),
    ('Power', 'W', 2000.0),
)

NOMINAL_FREQUENCY_HZ = 50.0


@dataclass(frozen=True)
class GaugeReading:
    title: str
    value: float
    unit: str
    maximum: float
    percentage: float


@dataclass(frozen=True)
class MetricCard:
    title: str
    value: float
    unit: str
    status: str


@dataclass(frozen=True)
class ChartPoint:
    time: str
    power: float
    is_focused: bool


@dataclass(frozen=True)
class TableRow:
    number: int
    time: str
    voltage: str
    current: str
    power: str
    energy: str
    power_factor: str
    is_focused: bool


@dataclass(frozen=True)
class RealtimeSnapshot:
    record_position: str
    connection_label: str
    focused_at: str
    gauges: List[GaugeReading]
    metrics: List[MetricCard]
    chart: List[ChartPoint]
    table: List[TableRow]


class RealtimeMonitoringPage(DashboardPage):
    """Live view over the latest meter samples"""

    name = 'realtime'

    def __init__(self, api_client: PowerApiClient, config: Dict[str, Any]):
        super().__init__(api_client, config)
        realtime_config = config.get('realtime', {})
        self.sampler: CyclicSampler[PowerReading] = CyclicSampler(
            api_client.fetch_last_readings,
            capacity=int(realtime_config.get('buffer_size', 7)),
            refresh_interval_seconds=float(realtime_config.get('refresh_interval_seconds', 5)),
            advance_interval_seconds=float(realtime_config.get('advance_interval_seconds', 3)),
            name='realtime',
        )

    @property
    def is_running(self) -> bool:
        return self.sampler.is_running

    @property
    def is_live(self) -> bool:
        return self.sampler.connected

    def start(self) -> 'RealtimeMonitoringPage':
        self.sampler.start()
        logger.info("Page 'realtime' started")
        return self

    async def stop(self):
        await self.sampler.stop()
        logger.info("Page 'realtime' stopped")

    async def load(self):
        await self.sampler.refresh()

    def snapshot(self) -> Optional[RealtimeSnapshot]:
        """Current view model, or None while the first load is pending."""
        buffer = self.sampler.buffer
        current = self.sampler.focused
        if current is None:
            return None
        focus = self.sampler.focus_index

        gauge_values = (current.voltage, current.current, current.power_watts)
        gauges = [
            GaugeReading(title=title, value=value, unit=unit, maximum=maximum,
                         percentage=gauge_percentage(value, maximum))
            for (title, unit, maximum), value in zip(GAUGES, gauge_values)
        ]

        metrics = [
            # a missing frequency displays as nominal but still reads Unstable
            MetricCard('Frequency', current.frequency or NOMINAL_FREQUENCY_HZ, 'Hz',
                       frequency_status(current.frequency)),
            MetricCard('Power Factor', current.power_factor, '', power_factor_status(current.power_factor)),
            MetricCard('Energy Used', current.energy_kwh, 'kWh', energy_status(current.energy_kwh)),
        ]

        chart = [
            ChartPoint(time=format_time_label(reading.timestamp), power=reading.power_watts,
                       is_focused=index == focus)
            for index, reading in enumerate(buffer)
        ]

        table = [
            TableRow(
                number=index + 1,
                time=format_clock(reading.timestamp),
                voltage=f"{reading.voltage:.1f}",
                current=f"{reading.current:.2f}",
                power=f"{reading.power_watts:.0f}",
                energy=f"{reading.energy_kwh:.3f}",
                power_factor=f"{reading.power_factor:.2f}",
                is_focused=index == focus,
            )
            for index, reading in enumerate(buffer)
        ]

        return RealtimeSnapshot(
            record_position=f"Record {focus + 1} of {len(buffer)}",
            connection_label="Live Streaming" if self.sampler.connected else "Disconnected",
            focused_at=format_datetime(current.timestamp),
            gauges=gauges,
            metrics=metrics,
            chart=chart,
            table=table,
        )

    def render(self) -> List[str]:
        snapshot = self.snapshot()
        if snapshot is None:
            status = "Disconnected" if self.sampler.consecutive_failures else "Connecting"
            return [f"Real-time Monitoring [{status}]", "Loading latest records..."]

        lines = [
            f"Real-time Monitoring [{snapshot.connection_label}]",
            f"Displaying {snapshot.record_position} | Current: {snapshot.focused_at}",
        ]
        for gauge in snapshot.gauges:
            lines.append(f"  {gauge.title:<12} {gauge.value:8.1f} {gauge.unit:<3} "
                         f"({gauge.percentage:.0f}% of {gauge.maximum:g})")
        for metric in snapshot.metrics:
            lines.append(f"  {metric.title:<12} {metric.value:8.2f} {metric.unit:<3} [{metric.status}]")
        lines.append("  Trend: " + "  ".join(
            f"{'*' if point.is_focused else ''}{point.time}={point.power:.0f}W" for point in snapshot.chart))
        lines.append(f"  {'#':>2} {'Time':<8} {'V':>7} {'A':>6} {'W':>6} {'kWh':>8} {'PF':>5}")
        for row in snapshot.table:
            marker = '>' if row.is_focused else ' '
            lines.append(f" {marker}{row.number:>2} {row.time:<8} {row.voltage:>7} {row.current:>6} "
                         f"{row.power:>6} {row.energy:>8} {row.power_factor:>5}")
        return lines
