#!/usr/bin/env python3
"""
Monthly Reports page tests

Verifies:
- Independent placeholders per failed fetch
- Month-over-month energy change, including the January rollover
- Cost estimate and efficiency score
- Generated plain-text report
"""

import pytest
import sys
from pathlib import Path
from datetime import datetime

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from pages.reports_page import ReportsPage, previous_month
from power_api_client import PowerApiConnectionError, PowerApiStatusError
from power_models import MonthlyReportRecord, UsageStatistics


def report(month, year, total, avg=0.0, peak_date=None):
    return MonthlyReportRecord(month=month, year=year, total_energy=total, avg_daily_energy=avg,
                               peak_date=peak_date)


@pytest.fixture
def reports_client(api_client):
    api_client.fetch_monthly_reports.return_value = [report(1, 2025, 200.0), report(2, 2025, 250.0)]
    api_client.fetch_current_month_report.return_value = report(3, 2025, 275.0, 9.2, datetime(2025, 3, 14))
    api_client.fetch_statistics.return_value = UsageStatistics(total_energy=725.0, avg_daily_usage=8.1,
                                                               peak_usage=14.3, peak_hour="19:00")
    return api_client


@pytest.mark.parametrize("month,year,expected", [
    (3, 2025, (2, 2025)),
    (1, 2025, (12, 2024)),
    (12, 2024, (11, 2024)),
])
def test_previous_month(month, year, expected):
    assert previous_month(month, year) == expected


class TestReportMetrics:

    @pytest.mark.asyncio
    async def test_metrics(self, reports_client, dashboard_config):
        page = ReportsPage(reports_client, dashboard_config)
        await page.load()
        metrics = page.metrics()

        assert metrics.monthly_energy == 275.0
        assert metrics.energy_change == pytest.approx(10.0)
        assert metrics.estimated_cost_local == pytest.approx(275.0 * 1444.70)
        assert metrics.estimated_cost_usd == pytest.approx(275.0 * 1444.70 / 15500)
        assert metrics.efficiency_score == 92

    @pytest.mark.asyncio
    async def test_january_compares_with_previous_december(self, api_client, dashboard_config):
        api_client.fetch_monthly_reports.return_value = [report(12, 2024, 100.0), report(12, 2025, 500.0)]
        api_client.fetch_current_month_report.return_value = report(1, 2025, 80.0)
        api_client.fetch_statistics.return_value = UsageStatistics.zeroed()
        page = ReportsPage(api_client, dashboard_config)
        await page.load()
        assert page.metrics().energy_change == pytest.approx(-20.0)

    @pytest.mark.asyncio
    async def test_no_previous_month_means_no_change(self, reports_client, dashboard_config):
        reports_client.fetch_monthly_reports.return_value = [report(11, 2024, 300.0)]
        page = ReportsPage(reports_client, dashboard_config)
        await page.load()
        assert page.metrics().energy_change == 0.0

    @pytest.mark.asyncio
    async def test_zero_previous_month_means_no_change(self, reports_client, dashboard_config):
        reports_client.fetch_monthly_reports.return_value = [report(2, 2025, 0.0)]
        page = ReportsPage(reports_client, dashboard_config)
        await page.load()
        assert page.metrics().energy_change == 0.0

    def test_metrics_before_load(self, api_client, dashboard_config):
        page = ReportsPage(api_client, dashboard_config)
        metrics = page.metrics()
        assert metrics.monthly_energy == 0.0
        assert metrics.efficiency_score == 0


class TestReportFallbacks:

    @pytest.mark.asyncio
    async def test_each_fetch_falls_back_independently(self, reports_client, dashboard_config):
        reports_client.fetch_current_month_report.side_effect = PowerApiStatusError(503)
        page = ReportsPage(reports_client, dashboard_config)
        await page.load()

        now = datetime.now()
        assert len(page.monthly_reports) == 2
        assert (page.current_month.month, page.current_month.year) == (now.month, now.year)
        assert page.current_month.total_energy == 0.0
        assert page.statistics.total_energy == 725.0

    @pytest.mark.asyncio
    async def test_all_fetches_fail(self, api_client, dashboard_config):
        error = PowerApiConnectionError('down')
        api_client.fetch_monthly_reports.side_effect = error
        api_client.fetch_current_month_report.side_effect = error
        api_client.fetch_statistics.side_effect = error
        page = ReportsPage(api_client, dashboard_config)
        await page.load()

        assert page.monthly_reports == []
        assert page.statistics == UsageStatistics.zeroed()
        assert page.metrics().efficiency_score == 0
        assert "No monthly history yet" in page.render()[-1]

    @pytest.mark.asyncio
    async def test_reports_replaced_by_empty_list_on_failure(self, reports_client, dashboard_config):
        page = ReportsPage(reports_client, dashboard_config)
        await page.load()
        reports_client.fetch_monthly_reports.side_effect = PowerApiConnectionError('down')
        await page.load()
        assert page.monthly_reports == []


class TestReportOutput:

    @pytest.mark.asyncio
    async def test_report_rows(self, reports_client, dashboard_config):
        page = ReportsPage(reports_client, dashboard_config)
        await page.load()
        rows = page.report_rows()
        assert [r.period for r in rows] == ["Jan 2025", "Feb 2025"]
        assert rows[1].cost_local == pytest.approx(250.0 * 1444.70)
        assert rows[0].peak_date == "-"

    @pytest.mark.asyncio
    async def test_peak_date_label(self, reports_client, dashboard_config):
        page = ReportsPage(reports_client, dashboard_config)
        assert page.peak_date_label() == "N/A"
        await page.load()
        assert page.peak_date_label() == "14 Mar"

    @pytest.mark.asyncio
    async def test_generate_report(self, reports_client, dashboard_config):
        page = ReportsPage(reports_client, dashboard_config)
        await page.load()
        text = page.generate_report(now=datetime(2025, 3, 20, 12, 0, 0))

        assert text.startswith("MONTHLY ENERGY REPORT")
        assert "This Month: 3/2025" in text
        assert "Total Energy: 275.00 kWh" in text
        assert "Peak Date: 2025-03-14" in text
        assert "Estimated Cost: Rp 397.29" in text
        assert "- Peak Hour: 19:00" in text
        assert "Historical Data (2 months):" in text
        assert "  Feb 2025: 250.00 kWh (Rp 361.175)" in text

    @pytest.mark.asyncio
    async def test_render(self, reports_client, dashboard_config):
        page = ReportsPage(reports_client, dashboard_config)
        await page.load()
        text = "\n".join(page.render())
        assert "+10.0% vs last month" in text
        assert "@ Rp 1.444,70/kWh" in text
        assert "Efficiency Score: 92" in text
