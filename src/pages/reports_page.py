#!/usr/bin/env python3
"""
Monthly Reports page.

Every 5 minutes fetches three things independently: the list of monthly
reports, the current-month report and overall statistics. A failed fetch
puts a zeroed placeholder in place of that part only.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from energy_metrics import ElectricityCostCalculator, percent_change
from pages.base_page import DashboardPage
from periodic_task import PeriodicTask
from power_api_client import PowerApiClient, PowerApiError
from power_models import MonthlyReportRecord, UsageStatistics
from utils.formatting import (
    format_datetime,
    format_rupiah,
    format_signed_percent,
    format_usd,
    month_name,
)

logger = logging.getLogger(__name__)

EFFICIENCY_SCORE_WITH_HISTORY = 92


@dataclass(frozen=True)
class ReportMetrics:
    monthly_energy: float
    energy_change: float  # % vs previous month
    estimated_cost_local: float
    estimated_cost_usd: float
    efficiency_score: int


@dataclass(frozen=True)
class ReportRow:
    period: str
    total_energy: float
    avg_daily_energy: float
    peak_date: str
    cost_local: float
    cost_usd: float


def previous_month(month: int, year: int):
    """(month, year) of the calendar month before; January rolls back a year."""
    if month == 1:
        return 12, year - 1
    return month - 1, year


class ReportsPage(DashboardPage):
    """Monthly consumption reports with cost estimates"""

    name = 'reports'

    def __init__(self, api_client: PowerApiClient, config: Dict[str, Any]):
        super().__init__(api_client, config)
        reports_config = config.get('reports', {})
        self.refresh_interval_seconds = float(reports_config.get('refresh_interval_seconds', 300))
        self.cost_calculator = ElectricityCostCalculator(config)

        self.monthly_reports: List[MonthlyReportRecord] = []
        self.current_month: Optional[MonthlyReportRecord] = None
        self.statistics: Optional[UsageStatistics] = None
        self.loading = True

    def _build_tasks(self) -> List[PeriodicTask]:
        return [PeriodicTask('reports-refresh', self.refresh_interval_seconds, self.load)]

    async def load(self):
        self.loading = True
        await self.fetch_monthly_reports()
        await self.fetch_current_month()
        await self.fetch_statistics()
        self.loading = False

    async def fetch_monthly_reports(self):
        try:
            self.monthly_reports = await self.api.fetch_monthly_reports()
            logger.info(f"Loaded {len(self.monthly_reports)} monthly reports")
        except PowerApiError as e:
            logger.error(f"Error fetching monthly reports: {e}")
            self.monthly_reports = []

    async def fetch_current_month(self):
        try:
            self.current_month = await self.api.fetch_current_month_report()
        except PowerApiError as e:
            logger.error(f"Error fetching current month: {e}")
            self.current_month = MonthlyReportRecord.placeholder()

    async def fetch_statistics(self):
        try:
            self.statistics = await self.api.fetch_statistics()
        except PowerApiError as e:
            logger.error(f"Error fetching statistics: {e}")
            self.statistics = UsageStatistics.zeroed()

    def find_report(self, month: int, year: int) -> Optional[MonthlyReportRecord]:
        for report in self.monthly_reports:
            if report.month == month and report.year == year:
                return report
        return None

    def metrics(self) -> ReportMetrics:
        """Headline numbers for the current month."""
        current = self.current_month
        if current is None:
            return ReportMetrics(0.0, 0.0, 0.0, 0.0, 0)

        monthly_energy = current.total_energy
        energy_change = 0.0
        previous = self.find_report(*previous_month(current.month, current.year))
        if previous is not None:
            energy_change = percent_change(monthly_energy, previous.total_energy)

        cost = self.cost_calculator.cost_of(monthly_energy)
        return ReportMetrics(
            monthly_energy=monthly_energy,
            energy_change=energy_change,
            estimated_cost_local=cost.local,
            estimated_cost_usd=cost.usd,
            efficiency_score=EFFICIENCY_SCORE_WITH_HISTORY if self.monthly_reports else 0,
        )

    def report_rows(self) -> List[ReportRow]:
        rows = []
        for report in self.monthly_reports:
            cost = self.cost_calculator.cost_of(report.total_energy)
            rows.append(ReportRow(
                period=f"{month_name(report.month)} {report.year}",
                total_energy=report.total_energy,
                avg_daily_energy=report.avg_daily_energy,
                peak_date=report.peak_date.strftime("%d/%m/%Y") if report.peak_date else "-",
                cost_local=cost.local,
                cost_usd=cost.usd,
            ))
        return rows

    def peak_date_label(self) -> str:
        """Day and short month of the current month's peak, or N/A."""
        if self.current_month is None or self.current_month.peak_date is None:
            return "N/A"
        peak = self.current_month.peak_date
        return f"{peak.day} {month_name(peak.month)}"

    def generate_report(self, now: Optional[datetime] = None) -> str:
        """Plain-text monthly energy report."""
        current = self.current_month or MonthlyReportRecord.placeholder(now)
        stats = self.statistics or UsageStatistics.zeroed()
        cost = self.cost_calculator.cost_of(current.total_energy)

        lines = [
            "MONTHLY ENERGY REPORT",
            "=====================",
            f"Generated: {format_datetime(now or datetime.now())}",
            "",
            f"This Month: {current.month}/{current.year}",
            f"Total Energy: {current.total_energy:.2f} kWh",
            f"Daily Average: {current.avg_daily_energy:.2f} kWh",
            f"Peak Date: {current.peak_date.date().isoformat() if current.peak_date else 'N/A'}",
            f"Estimated Cost: {format_rupiah(cost.local)} ({format_usd(cost.usd)})",
            "",
            "Statistics (All Data):",
            f"- Total: {stats.total_energy:.2f} kWh",
            f"- Average: {stats.avg_daily_usage:.2f} kWh/day",
            f"- Peak: {stats.peak_usage:.2f} kWh",
            f"- Peak Hour: {stats.peak_hour}",
            "",
            f"Historical Data ({len(self.monthly_reports)} months):",
        ]
        for row in self.report_rows():
            lines.append(f"  {row.period}: {row.total_energy:.2f} kWh ({format_rupiah(row.cost_local)})")
        return "\n".join(lines)

    def render(self) -> List[str]:
        if self.loading and self.current_month is None:
            return ["Monthly Reports", "Loading report data..."]

        m = self.metrics()
        current = self.current_month or MonthlyReportRecord.placeholder()
        lines = [
            "Monthly Reports",
            f"  {len(self.monthly_reports)} months of history available",
            f"  This Month: {m.monthly_energy:.2f} kWh ({format_signed_percent(m.energy_change)} vs last month)",
            f"  Estimated Cost: {format_rupiah(m.estimated_cost_local)} "
            f"@ {format_rupiah(self.cost_calculator.rate_per_kwh, 2)}/kWh ({format_usd(m.estimated_cost_usd)})",
            f"  Daily Average: {current.avg_daily_energy:.2f} kWh",
            f"  Peak Date: {self.peak_date_label()}",
            f"  Efficiency Score: {m.efficiency_score}",
        ]

        rows = self.report_rows()
        if not rows:
            lines.append("  No monthly history yet")
            return lines
        lines.append(f"  {'Period':<10} {'Total':>12} {'Daily Avg':>12} {'Peak Date':<11} "
                     f"{'Cost (IDR)':>16} {'Cost (USD)':>10}")
        for row in rows:
            lines.append(f"  {row.period:<10} {row.total_energy:>8.2f} kWh {row.avg_daily_energy:>8.2f} kWh "
                         f"{row.peak_date:<11} {format_rupiah(row.cost_local):>16} {format_usd(row.cost_usd):>10}")
        return lines
