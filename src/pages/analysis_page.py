#!/usr/bin/env python3
"""
Power Analysis page.

Loads peak usage, weekly load pattern, power factor and 30-day statistics in
parallel. Any part that fails keeps showing something: the charts fall back
to sample data, power factor and statistics keep their previous value.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from energy_metrics import SAVINGS_RATE_USD_PER_KWH, power_factor_rating, savings_potential
from fallback_data import (
    DEFAULT_PEAK_HOURS,
    DEFAULT_POWER_FACTOR,
    DUMMY_LOAD_PATTERN,
    DUMMY_PEAK_DATA,
    FALLBACK_PEAK_HOUR,
)
from pages.base_page import DashboardPage
from periodic_task import PeriodicTask
from power_api_client import PowerApiClient, PowerApiError
from power_models import LoadPatternDay, PeakUsagePoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatisticCard:
    value: str
    description: str


@dataclass(frozen=True)
class AnalysisStatistics:
    peak_hours: StatisticCard
    efficiency_trend: StatisticCard
    savings_potential: StatisticCard


@dataclass(frozen=True)
class Suggestion:
    id: str
    title: str
    savings: str


SUGGESTIONS: List[Suggestion] = [
    Suggestion("1", "Shift high-power usage to off-peak hours", "$12/month"),
    Suggestion("2", "Improve power factor with capacitor banks", "$8/month"),
    Suggestion("3", "Replace inefficient devices", "$15/month"),
]

DEFAULT_STATISTICS = AnalysisStatistics(
    peak_hours=StatisticCard(DEFAULT_PEAK_HOURS, "Highest consumption period"),
    efficiency_trend=StatisticCard("+5%", "Improvement this month"),
    savings_potential=StatisticCard("$35/mo", "With optimizations"),
)


class PowerAnalysisPage(DashboardPage):
    """Power factor, peak usage and load pattern insights"""

    name = 'analysis'

    def __init__(self, api_client: PowerApiClient, config: Dict[str, Any]):
        super().__init__(api_client, config)
        analysis_config = config.get('analysis', {})
        self.statistics_days = int(analysis_config.get('statistics_days', 30))
        self.savings_rate = float(analysis_config.get('savings_rate_usd_per_kwh', SAVINGS_RATE_USD_PER_KWH))
        self.refresh_interval_seconds = float(analysis_config.get('refresh_interval_seconds', 0) or 0)

        self.power_factor = DEFAULT_POWER_FACTOR
        self.peak_usage: List[PeakUsagePoint] = list(DUMMY_PEAK_DATA)
        self.load_pattern: List[LoadPatternDay] = list(DUMMY_LOAD_PATTERN)
        self.statistics = DEFAULT_STATISTICS
        self.loading = True
        self.using_dummy_peak = True
        self.using_dummy_load = True

    def _build_tasks(self) -> List[PeriodicTask]:
        if self.refresh_interval_seconds > 0:
            return [PeriodicTask('analysis-refresh', self.refresh_interval_seconds, self.load)]
        # load once on start
        return [PeriodicTask('analysis-load', 60, self.load, max_runs=1)]

    async def load(self):
        """Fetch all four sections concurrently; each handles its own errors."""
        self.loading = True
        await asyncio.gather(
            self.fetch_peak_usage(),
            self.fetch_load_pattern(),
            self.fetch_power_factor(),
            self.fetch_statistics(),
        )
        self.loading = False

    async def fetch_peak_usage(self):
        try:
            points = await self.api.fetch_peak_usage()
        except PowerApiError as e:
            logger.error(f"Error fetching peak usage: {e}")
            self._use_dummy_peak()
            return
        if not points:
            logger.info("No peak usage data, using dummy data")
            self._use_dummy_peak()
            return
        self.peak_usage = points
        self.using_dummy_peak = False

    async def fetch_load_pattern(self):
        try:
            days = await self.api.fetch_load_pattern()
        except PowerApiError as e:
            logger.error(f"Error fetching load pattern: {e}")
            self._use_dummy_load()
            return
        if not days:
            logger.info("No load pattern data, using dummy data")
            self._use_dummy_load()
            return
        self.load_pattern = days
        self.using_dummy_load = False

    async def fetch_power_factor(self):
        try:
            power_factor = await self.api.fetch_power_factor()
        except PowerApiError as e:
            logger.error(f"Error fetching power factor: {e}")
            return
        if power_factor:
            self.power_factor = round(power_factor, 2)

    async def fetch_statistics(self):
        try:
            stats = await self.api.fetch_statistics(days=self.statistics_days,
                                                    default_peak_hour=FALLBACK_PEAK_HOUR)
        except PowerApiError as e:
            logger.error(f"Error fetching statistics: {e}")
            return
        savings = savings_potential(stats.total_energy, self.savings_rate)
        self.statistics = AnalysisStatistics(
            peak_hours=StatisticCard(stats.peak_hour, "Highest consumption period"),
            efficiency_trend=StatisticCard("+5%", "Improvement this month"),
            savings_potential=StatisticCard(f"${savings}/mo", "With optimizations"),
        )

    def _use_dummy_peak(self):
        self.peak_usage = list(DUMMY_PEAK_DATA)
        self.using_dummy_peak = True

    def _use_dummy_load(self):
        self.load_pattern = list(DUMMY_LOAD_PATTERN)
        self.using_dummy_load = True

    @property
    def power_factor_status(self) -> str:
        return power_factor_rating(self.power_factor)

    @property
    def max_load_value(self) -> float:
        """Largest single bar in the load pattern chart (scales the chart)."""
        if not self.load_pattern:
            return 0.0
        return max(day.peak for day in self.load_pattern)

    @property
    def suggestions(self) -> List[Suggestion]:
        return list(SUGGESTIONS)

    def render(self) -> List[str]:
        if self.loading and self.using_dummy_peak and self.using_dummy_load:
            return ["Power Analysis", "Loading power analysis..."]

        lines = [
            "Power Analysis",
            f"  Power Factor Efficiency: {self.power_factor:.2f} [{self.power_factor_status}]",
            "  Peak Usage Time (Last 7 Records)" + (" [sample data]" if self.using_dummy_peak else ""),
            "    " + "  ".join(f"{p.time}={p.usage:.0f}W" for p in self.peak_usage),
            "  Load Pattern Analysis" + (" [sample data]" if self.using_dummy_load else ""),
        ]
        for day in self.load_pattern:
            lines.append(f"    {day.day:<4} morning={day.morning:.0f}W afternoon={day.afternoon:.0f}W "
                         f"evening={day.evening:.0f}W")
        lines.append("  Energy Saving Suggestions")
        for suggestion in self.suggestions:
            lines.append(f"    - {suggestion.title} (potential savings: {suggestion.savings})")
        stats = self.statistics
        lines.append(f"  Peak Hours: {stats.peak_hours.value} | Efficiency Trend: {stats.efficiency_trend.value} "
                     f"| Savings Potential: {stats.savings_potential.value}")
        return lines
