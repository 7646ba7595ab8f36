#!/usr/bin/env python3
"""
Power Telemetry Data Models

Typed records for everything the meter backend returns. Each record is built
from the raw JSON dict with ``from_api()``; numeric fields are coerced leniently
so a missing or malformed value renders as 0 instead of breaking a page.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce an API value to float, falling back to ``default`` for junk.

    None, empty strings, booleans, non-numeric strings, NaN and infinities all
    yield the default.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_optional_number(value: Any) -> Optional[float]:
    """Like to_number, but a falsy input stays None."""
    if not value:
        return None
    return to_number(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; a trailing Z is treated as UTC."""
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Unparsable timestamp from API: {value!r}")
        return None


def _first(item: Dict[str, Any], *keys: str) -> Any:
    """Return the first present (non-None) value among keys."""
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None


@dataclass(frozen=True)
class PowerReading:
    """One meter sample snapshot, immutable once fetched."""
    id: int
    voltage: float  # V
    current: float  # A
    power_watts: float  # W
    energy_kwh: float  # kWh
    frequency: float  # Hz
    power_factor: float
    timestamp: Optional[datetime] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'PowerReading':
        return cls(
            id=int(to_number(item.get('id'))),
            voltage=to_number(_first(item, 'tegangan', 'voltage')),
            current=to_number(_first(item, 'arus', 'current')),
            power_watts=to_number(_first(item, 'daya_watt', 'power_watts', 'power')),
            energy_kwh=to_number(_first(item, 'energi_kwh', 'energy_kwh', 'energy')),
            frequency=to_number(_first(item, 'frekuensi', 'frequency')),
            power_factor=to_number(_first(item, 'pf', 'power_factor')),
            timestamp=parse_timestamp(_first(item, 'created_at', 'timestamp')),
        )


class AlertSeverity(Enum):
    """Alert severity levels as reported by the backend"""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @classmethod
    def parse(cls, value: Any) -> 'AlertSeverity':
        try:
            return cls(str(value).lower())
        except ValueError:
            logger.warning(f"Unknown alert severity {value!r}, treating as info")
            return cls.INFO


@dataclass(frozen=True)
class AlertRecord:
    """A single consumption alert."""
    id: int
    type: str
    severity: AlertSeverity
    message: str
    value: float
    threshold: float
    date: Optional[datetime] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'AlertRecord':
        return cls(
            id=int(to_number(item.get('id'))),
            type=str(item.get('type') or ''),
            severity=AlertSeverity.parse(item.get('severity')),
            message=str(item.get('message') or ''),
            value=to_number(item.get('value')),
            threshold=to_number(item.get('threshold')),
            date=parse_timestamp(item.get('date')),
            is_read=bool(_first(item, 'is_read', 'isRead')),
            created_at=parse_timestamp(item.get('created_at')),
        )


ALERT_TYPES = ('high_consumption', 'low_power_factor', 'unusual_pattern', 'peak_usage')


@dataclass(frozen=True)
class AlertSummary:
    """Alert counts by severity and by type."""
    total: int = 0
    critical: int = 0
    warning: int = 0
    info: int = 0
    unread: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'AlertSummary':
        raw_by_type = item.get('by_type') or {}
        by_type = {name: int(to_number(raw_by_type.get(name))) for name in ALERT_TYPES}
        # keep any extra types the backend adds
        for name, count in raw_by_type.items():
            by_type.setdefault(name, int(to_number(count)))
        return cls(
            total=int(to_number(item.get('total'))),
            critical=int(to_number(item.get('critical'))),
            warning=int(to_number(item.get('warning'))),
            info=int(to_number(item.get('info'))),
            unread=int(to_number(item.get('unread'))),
            by_type=by_type,
        )


@dataclass(frozen=True)
class MonthlyReportRecord:
    """Billing-period aggregate for one calendar month."""
    month: int
    year: int
    total_energy: float  # kWh
    avg_daily_energy: float  # kWh/day
    peak_date: Optional[datetime] = None
    period: str = ''

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'MonthlyReportRecord':
        return cls(
            month=int(to_number(item.get('month'))),
            year=int(to_number(item.get('year'))),
            total_energy=to_number(_first(item, 'total_energy', 'totalEnergy')),
            avg_daily_energy=to_number(_first(item, 'avg_daily_energy', 'avgDailyEnergy')),
            peak_date=parse_timestamp(_first(item, 'peak_date', 'peakDate')),
            period=str(item.get('period') or ''),
        )

    @classmethod
    def placeholder(cls, now: Optional[datetime] = None) -> 'MonthlyReportRecord':
        """Zeroed report for the month containing ``now``."""
        now = now or datetime.now()
        return cls(month=now.month, year=now.year, total_energy=0.0, avg_daily_energy=0.0)


@dataclass(frozen=True)
class UsageStatistics:
    """Aggregate usage statistics over the requested window."""
    total_energy: float = 0.0
    avg_daily_usage: float = 0.0
    peak_usage: float = 0.0
    peak_hour: str = "00:00"
    total_days: int = 0

    @classmethod
    def from_api(cls, item: Dict[str, Any], default_peak_hour: str = "00:00") -> 'UsageStatistics':
        return cls(
            total_energy=to_number(item.get('total_energy')),
            avg_daily_usage=to_number(item.get('avg_daily_usage')),
            peak_usage=to_number(item.get('peak_usage')),
            peak_hour=str(item.get('peak_hour') or default_peak_hour),
            total_days=int(to_number(item.get('total_days'))),
        )

    @classmethod
    def zeroed(cls) -> 'UsageStatistics':
        return cls()


@dataclass(frozen=True)
class PeakUsagePoint:
    time: str
    usage: float  # W
    timestamp: Optional[datetime] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'PeakUsagePoint':
        return cls(
            time=str(item.get('time') or ''),
            usage=to_number(item.get('usage')),
            timestamp=parse_timestamp(item.get('timestamp')),
        )


@dataclass(frozen=True)
class LoadPatternDay:
    """Average load (W) per part of day for one weekday."""
    day: str
    morning: float
    afternoon: float
    evening: float
    total_energy: Optional[float] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'LoadPatternDay':
        return cls(
            day=str(item.get('day') or ''),
            morning=to_number(item.get('morning')),
            afternoon=to_number(item.get('afternoon')),
            evening=to_number(item.get('evening')),
            total_energy=to_optional_number(item.get('total_energy')),
        )

    @property
    def peak(self) -> float:
        return max(self.morning, self.afternoon, self.evening)


@dataclass(frozen=True)
class TrendPoint:
    """One point of the energy consumption trend chart."""
    time: str
    energy: float  # kWh
    voltage: Optional[float] = None
    current: Optional[float] = None
    hour: Optional[int] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any], position: int) -> 'TrendPoint':
        hour = item.get('hour')
        return cls(
            time=str(item.get('time') or f"Point {position + 1}"),
            energy=to_number(item.get('energy') or item.get('total_energy')),
            voltage=to_optional_number(item.get('voltage')),
            current=to_optional_number(item.get('current')),
            hour=int(to_number(hour)) if hour is not None else None,
        )


@dataclass(frozen=True)
class DailyUsagePoint:
    """One bar of the daily usage comparison chart."""
    day: str
    usage: float  # kWh
    date: str

    @classmethod
    def from_api(cls, item: Dict[str, Any], today: Optional[datetime] = None) -> 'DailyUsagePoint':
        return cls(
            day=str(item.get('day_name') or item.get('time') or 'Unknown'),
            usage=to_number(item.get('energy') or item.get('total_energy')),
            date=str(item.get('date') or (today or datetime.now(timezone.utc)).isoformat()),
        )


@dataclass(frozen=True)
class ApiEnvelope:
    """The {success, data, count} wrapper used by the meter backend."""
    success: bool
    data: Any
    count: Optional[int] = None
    message: Optional[str] = None

    @property
    def items(self) -> List[Any]:
        """``data`` as a list; anything that is not a list yields []"""
        return self.data if isinstance(self.data, list) else []
