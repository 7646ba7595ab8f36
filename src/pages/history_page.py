#!/usr/bin/env python3
"""
Energy Usage History page.

Three independent data flows:
- trend data for the active time filter (hourly/daily/monthly, all records),
  refetched on every filter change or manual refresh
- aggregate statistics, polled every 60 seconds
- daily usage for the comparison chart and history table, polled every
  5 minutes and trimmed to the last 30 days

A trend response that arrives after the user switched filters, or after a
newer request for the same filter was applied, is dropped.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from energy_metrics import (
    ElectricityCostCalculator,
    UsageClassification,
    UsageClassifier,
    UsagePeriod,
)
from pages.base_page import DashboardPage
from periodic_task import PeriodicTask
from power_api_client import PowerApiClient, PowerApiError
from power_models import DailyUsagePoint, TrendPoint, UsageStatistics
from utils.formatting import format_datetime, format_rupiah, format_usd

logger = logging.getLogger(__name__)


class TimeFilter(Enum):
    HOURLY = "Hourly"
    DAILY = "Daily"
    MONTHLY = "Monthly"

    @classmethod
    def parse(cls, value: Union['TimeFilter', str]) -> 'TimeFilter':
        if isinstance(value, TimeFilter):
            return value
        for member in cls:
            if member.value.lower() == str(value).lower():
                return member
        raise ValueError(f"Unknown time filter: {value}")

    @property
    def granularity(self) -> str:
        return self.value.lower()

    @property
    def period(self) -> UsagePeriod:
        return UsagePeriod(self.granularity)


@dataclass(frozen=True)
class HistoryRow:
    day: str
    date: str
    usage: float
    classification: UsageClassification
    cost_local: float
    cost_usd: float


@dataclass(frozen=True)
class StatisticsCard:
    title: str
    value: str
    unit: str
    subtitle: str


class EnergyHistoryPage(DashboardPage):
    """Historical consumption with per-day classification and cost"""

    name = 'history'

    def __init__(self, api_client: PowerApiClient, config: Dict[str, Any]):
        super().__init__(api_client, config)
        history_config = config.get('history', {})
        self.active_filter = TimeFilter.parse(history_config.get('default_filter', 'daily'))
        self.statistics_interval_seconds = float(history_config.get('statistics_interval_seconds', 60))
        self.daily_usage_interval_seconds = float(history_config.get('daily_usage_interval_seconds', 300))
        self.daily_usage_window = int(history_config.get('daily_usage_window', 30))

        self.classifier = UsageClassifier(config)
        self.cost_calculator = ElectricityCostCalculator(config)

        self.trend_data: List[TrendPoint] = []
        self.daily_usage: List[DailyUsagePoint] = []
        self.statistics = UsageStatistics.zeroed()
        self.loading = True
        self.last_update: Optional[datetime] = None
        self._issued_seq = 0
        self._applied_seq = 0

    def _build_tasks(self) -> List[PeriodicTask]:
        return [
            PeriodicTask('history-statistics', self.statistics_interval_seconds, self.fetch_statistics),
            PeriodicTask('history-daily-usage', self.daily_usage_interval_seconds, self.fetch_daily_usage),
            PeriodicTask('history-trend', self.statistics_interval_seconds, self.fetch_trend_data, max_runs=1),
        ]

    async def load(self):
        await self.fetch_statistics()
        await self.fetch_trend_data()
        await self.fetch_daily_usage()

    async def set_filter(self, time_filter: Union[TimeFilter, str]):
        """Switch the trend chart granularity and refetch."""
        self.active_filter = TimeFilter.parse(time_filter)
        await self.fetch_trend_data()

    async def refresh(self):
        """Manual refresh: refetch the trend for the active filter."""
        await self.fetch_trend_data()

    async def fetch_statistics(self):
        try:
            self.statistics = await self.api.fetch_statistics()
        except PowerApiError as e:
            logger.error(f"[Stats] Failed to fetch: {e}")

    async def fetch_trend_data(self):
        self._issued_seq += 1
        seq = self._issued_seq
        requested = self.active_filter
        label = requested.value
        self.loading = True
        logger.debug(f"[{label}] Fetching all {requested.granularity} records")

        try:
            envelope = await self.api.fetch_history(requested.granularity)
        except PowerApiError as e:
            if self._is_stale(seq, requested):
                return
            self._applied_seq = seq
            logger.error(f"[{label}] Fetch error: {e}")
            self.trend_data = []
            self.loading = False
            return

        if self._is_stale(seq, requested):
            return
        self._applied_seq = seq

        records = envelope.items
        if not records:
            logger.warning(f"[{label}] Empty data array")
            self.trend_data = []
        else:
            self.trend_data = [TrendPoint.from_api(item, index) for index, item in enumerate(records)
                               if isinstance(item, dict)]
            self.last_update = datetime.now()
            logger.debug(f"[{label}] Formatted {len(self.trend_data)} trend points")
        self.loading = False

    async def fetch_daily_usage(self):
        try:
            envelope = await self.api.fetch_history('daily')
        except PowerApiError as e:
            logger.error(f"[Bar] Failed: {e}")
            self.daily_usage = []
            return

        records = [item for item in envelope.items if isinstance(item, dict)]
        if not records:
            logger.warning("[Bar] No data")
            self.daily_usage = []
            return

        self.daily_usage = [DailyUsagePoint.from_api(item) for item in records[-self.daily_usage_window:]]
        logger.debug(f"[Bar] Formatted {len(self.daily_usage)} records")

    def _is_stale(self, seq: int, requested: TimeFilter) -> bool:
        """A trend response is stale once the filter moved on or a newer request was applied."""
        if requested is not self.active_filter:
            logger.debug(f"[{requested.value}] Dropping response, active filter is now {self.active_filter.value}")
            return True
        if seq < self._applied_seq:
            logger.debug(f"[{requested.value}] Dropping response #{seq}, #{self._applied_seq} already applied")
            return True
        return False

    def history_rows(self) -> List[HistoryRow]:
        """Detailed per-day table: usage, daily classification and cost."""
        rows = []
        for point in self.daily_usage:
            cost = self.cost_calculator.cost_of(point.usage)
            rows.append(HistoryRow(
                day=point.day,
                date=point.date,
                usage=point.usage,
                classification=self.classifier.classify(point.usage, UsagePeriod.DAILY),
                cost_local=cost.local,
                cost_usd=cost.usd,
            ))
        return rows

    def statistics_cards(self) -> List[StatisticsCard]:
        stats = self.statistics
        avg_status = self.classifier.classify(stats.avg_daily_usage, UsagePeriod.DAILY)
        return [
            StatisticsCard("Total Energy", f"{stats.total_energy:.2f}", "kWh",
                           f"From {stats.total_days} days of data"),
            StatisticsCard("Average Daily", f"{stats.avg_daily_usage:.3f}", "kWh", avg_status.description),
            StatisticsCard("Peak Usage", f"{stats.peak_usage:.3f}", "kWh", "Highest recorded"),
            StatisticsCard("Peak Hour", stats.peak_hour, "", "Most active time"),
        ]

    def trend_classification(self, point: TrendPoint) -> UsageClassification:
        """Classify a trend point against the active filter's period."""
        return self.classifier.classify(point.energy, self.active_filter.period)

    def render(self) -> List[str]:
        lines = [
            "Energy Usage History",
            f"  Last updated: {format_datetime(self.last_update)}",
            f"  Filter: {self.active_filter.value} ({len(self.trend_data)} records)"
            + (" loading..." if self.loading else ""),
        ]
        for card in self.statistics_cards():
            unit = f" {card.unit}" if card.unit else ""
            lines.append(f"  {card.title}: {card.value}{unit} ({card.subtitle})")

        if self.trend_data:
            recent = self.trend_data[-5:]
            lines.append("  Trend (latest): " + "  ".join(
                f"{p.time}={p.energy:.4f}kWh[{self.trend_classification(p).label}]" for p in recent))
        else:
            lines.append("  Trend: No data in database")

        rows = self.history_rows()
        lines.append(f"  Detailed History (Last {min(len(rows), self.daily_usage_window)} Days)")
        for row in rows:
            lines.append(f"    {row.day:<12} {row.usage:8.3f} kWh  {row.classification.label:<9} "
                         f"{format_rupiah(row.cost_local):>14}  {format_usd(row.cost_usd):>8}")
        return lines
