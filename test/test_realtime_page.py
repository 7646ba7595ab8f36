#!/usr/bin/env python3
"""
Real-time Monitoring page tests

Covers the view model built from the focused sample, the connection state
after failures and the page lifecycle.
"""

import asyncio
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from pages.realtime_page import RealtimeMonitoringPage
from power_api_client import PowerApiConnectionError
from power_models import PowerReading
from conftest import reading_payload


def readings(count):
    return [PowerReading.from_api(reading_payload(i + 1, power=100.0 * (i + 1),
                                                  created_at=f'2025-01-15T10:0{i}:00Z'))
            for i in range(count)]


class TestRealtimeSnapshot:

    def test_no_snapshot_before_first_load(self, api_client, dashboard_config):
        page = RealtimeMonitoringPage(api_client, dashboard_config)
        assert page.snapshot() is None
        assert page.render()[-1] == "Loading latest records..."

    @pytest.mark.asyncio
    async def test_snapshot_of_focused_reading(self, api_client, dashboard_config):
        api_client.fetch_last_readings.return_value = readings(3)
        page = RealtimeMonitoringPage(api_client, dashboard_config)
        await page.load()
        page.sampler.advance_focus()

        snapshot = page.snapshot()
        assert snapshot.record_position == "Record 2 of 3"
        assert snapshot.connection_label == "Live Streaming"
        power_gauge = snapshot.gauges[2]
        assert power_gauge.title == 'Power'
        assert power_gauge.value == 200.0
        assert power_gauge.percentage == pytest.approx(10.0)
        assert [p.is_focused for p in snapshot.chart] == [False, True, False]
        assert snapshot.chart[0].time == readings(1)[0].timestamp.astimezone().strftime("%H:%M")
        assert snapshot.table[1].is_focused
        assert snapshot.table[1].number == 2

    @pytest.mark.asyncio
    async def test_metric_statuses(self, api_client, dashboard_config):
        api_client.fetch_last_readings.return_value = [
            PowerReading.from_api(reading_payload(1, frequency=0, pf=0.75, energy=2.5))
        ]
        page = RealtimeMonitoringPage(api_client, dashboard_config)
        await page.load()
        frequency, power_factor, energy = page.snapshot().metrics
        assert frequency.value == 50.0
        assert frequency.status == "Unstable"
        assert power_factor.status == "Poor"
        assert energy.status == "High"

    @pytest.mark.asyncio
    async def test_gauge_capped_at_full_scale(self, api_client, dashboard_config):
        api_client.fetch_last_readings.return_value = [
            PowerReading.from_api(reading_payload(1, voltage=260, power=2500))
        ]
        page = RealtimeMonitoringPage(api_client, dashboard_config)
        await page.load()
        voltage, _, power = page.snapshot().gauges
        assert voltage.percentage == 100.0
        assert power.percentage == 100.0

    @pytest.mark.asyncio
    async def test_failure_keeps_data_and_shows_disconnected(self, api_client, dashboard_config):
        api_client.fetch_last_readings.side_effect = [readings(2), PowerApiConnectionError('down')]
        page = RealtimeMonitoringPage(api_client, dashboard_config)
        await page.load()
        await page.load()

        assert not page.is_live
        snapshot = page.snapshot()
        assert snapshot.connection_label == "Disconnected"
        assert len(snapshot.table) == 2
        assert page.render()[0] == "Real-time Monitoring [Disconnected]"

    def test_buffer_size_from_config(self, api_client, dashboard_config):
        dashboard_config['realtime']['buffer_size'] = 3
        page = RealtimeMonitoringPage(api_client, dashboard_config)
        assert page.sampler.capacity == 3


class TestRealtimeLifecycle:

    @pytest.mark.asyncio
    async def test_start_and_stop(self, api_client, fast_config):
        api_client.fetch_last_readings.return_value = readings(7)
        page = RealtimeMonitoringPage(api_client, fast_config)
        async with page:
            assert page.is_running
            await asyncio.sleep(0.08)
        assert not page.is_running
        assert api_client.fetch_last_readings.await_count >= 2
        assert page.sampler.focus_index > 0
