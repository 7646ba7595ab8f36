#!/usr/bin/env python3
"""
Derived energy metrics for the meter dashboard.

Stateless helpers shared by the dashboard pages:
- Energy-usage classification into five buckets per period (hourly/daily/monthly)
- Electricity cost: kWh x tariff in local currency, converted to USD
- Small status rules used by gauges and metric cards

Thresholds follow typical household consumption bands (900 VA up to 5500 VA+
connections). Tariffs are the PLN residential rates in Rupiah per kWh.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Optional, Union
import logging

logger = logging.getLogger(__name__)


class UsagePeriod(Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY = "monthly"


class EnergyStatus(Enum):
    """Usage tiers, ordered from lowest to highest"""
    VERY_LOW = "Very Low"
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"
    VERY_HIGH = "Very High"

    @property
    def rank(self) -> int:
        return list(EnergyStatus).index(self)


STATUS_DESCRIPTIONS: Dict[EnergyStatus, str] = {
    EnergyStatus.VERY_LOW: "Very economical consumption",
    EnergyStatus.LOW: "Low consumption",
    EnergyStatus.NORMAL: "Normal consumption",
    EnergyStatus.HIGH: "High consumption",
    EnergyStatus.VERY_HIGH: "Very high consumption",
}

# Upper bounds (exclusive) in kWh for VERY_LOW, LOW, NORMAL, HIGH.
# Anything at or above the last bound is VERY_HIGH.
USAGE_THRESHOLDS: Dict[UsagePeriod, Dict[str, float]] = {
    UsagePeriod.HOURLY: {'very_low': 0.1, 'low': 0.3, 'normal': 0.8, 'high': 1.5},
    UsagePeriod.DAILY: {'very_low': 3.0, 'low': 8.0, 'normal': 15.0, 'high': 25.0},
    UsagePeriod.MONTHLY: {'very_low': 90.0, 'low': 240.0, 'normal': 450.0, 'high': 750.0},
}

# Rp per kWh
ELECTRICITY_RATES: Dict[str, float] = {
    'R1_900VA': 1444.70,
    'R1_1300VA': 1444.70,
    'R1_2200VA': 1444.70,
    'R2_3500VA': 1699.53,
}
DEFAULT_TARIFF_CLASS = 'R1_2200VA'
DEFAULT_CURRENCY = 'IDR'
USD_EXCHANGE_RATE = 15500.0  # local currency units per USD

SAVINGS_RATE_USD_PER_KWH = 0.15


@dataclass(frozen=True)
class UsageClassification:
    status: EnergyStatus
    description: str
    period: UsagePeriod

    @property
    def label(self) -> str:
        return self.status.value


@dataclass(frozen=True)
class CostBreakdown:
    """Cost of an amount of energy, unrounded."""
    local: float
    usd: float
    currency: str = DEFAULT_CURRENCY


def _parse_period(period: Union[UsagePeriod, str]) -> UsagePeriod:
    if isinstance(period, UsagePeriod):
        return period
    return UsagePeriod(str(period).lower())


class UsageClassifier:
    """Classify kWh usage against per-period thresholds."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            config: Full dashboard configuration; the optional
                ``energy_thresholds`` section overrides bounds per period
        """
        overrides = (config or {}).get('energy_thresholds', {}) or {}
        self.thresholds: Dict[UsagePeriod, Dict[str, float]] = {}
        for period, bounds in USAGE_THRESHOLDS.items():
            merged = dict(bounds)
            merged.update({k: float(v) for k, v in (overrides.get(period.value) or {}).items() if k in bounds})
            ordered = [merged[key] for key in ('very_low', 'low', 'normal', 'high')]
            if ordered != sorted(ordered):
                logger.warning(f"Thresholds for {period.value} are not ascending, using defaults")
                merged = dict(bounds)
            self.thresholds[period] = merged

    def classify(self, usage: float, period: Union[UsagePeriod, str]) -> UsageClassification:
        """
        Bucket ``usage`` (kWh) for ``period``.

        Buckets are half-open [lower, upper); the last one is unbounded.
        """
        period = _parse_period(period)
        bounds = self.thresholds[period]

        if usage < bounds['very_low']:
            status = EnergyStatus.VERY_LOW
        elif usage < bounds['low']:
            status = EnergyStatus.LOW
        elif usage < bounds['normal']:
            status = EnergyStatus.NORMAL
        elif usage < bounds['high']:
            status = EnergyStatus.HIGH
        else:
            status = EnergyStatus.VERY_HIGH

        return UsageClassification(status=status, description=STATUS_DESCRIPTIONS[status], period=period)


_default_classifier = UsageClassifier()


def classify_usage(usage: float, period: Union[UsagePeriod, str]) -> UsageClassification:
    """Classify with the default thresholds."""
    return _default_classifier.classify(usage, period)


class ElectricityCostCalculator:
    """Calculate electricity cost from the configured tariff."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            config: Full dashboard configuration dict; reads ``electricity_tariff``
        """
        tariff_config = (config or {}).get('electricity_tariff', {}) or {}
        self.rates = dict(ELECTRICITY_RATES)
        self.rates.update(tariff_config.get('rates', {}) or {})
        self.tariff_class = tariff_config.get('tariff_class', DEFAULT_TARIFF_CLASS)
        self.currency = tariff_config.get('currency', DEFAULT_CURRENCY)
        self.usd_exchange_rate = float(tariff_config.get('usd_exchange_rate', USD_EXCHANGE_RATE))

        if self.tariff_class not in self.rates:
            logger.warning(f"Unknown tariff class: {self.tariff_class}, using {DEFAULT_TARIFF_CLASS}")
            self.tariff_class = DEFAULT_TARIFF_CLASS
        if self.usd_exchange_rate <= 0:
            logger.warning(f"Invalid USD exchange rate {self.usd_exchange_rate}, using {USD_EXCHANGE_RATE}")
            self.usd_exchange_rate = USD_EXCHANGE_RATE

        self.rate_per_kwh = float(self.rates[self.tariff_class])
        logger.debug(f"Cost calculator: tariff={self.tariff_class}, rate={self.rate_per_kwh} {self.currency}/kWh")

    def cost_of(self, kwh: float) -> CostBreakdown:
        local = kwh * self.rate_per_kwh
        return CostBreakdown(local=local, usd=local / self.usd_exchange_rate, currency=self.currency)

    def get_tariff_info(self) -> Dict[str, Any]:
        return {
            'tariff_class': self.tariff_class,
            'rate_per_kwh': self.rate_per_kwh,
            'currency': self.currency,
            'usd_exchange_rate': self.usd_exchange_rate,
        }


_default_calculator = ElectricityCostCalculator()


def cost_of(kwh: float) -> CostBreakdown:
    """Cost with the default tariff: kWh x 1444.70 Rp, / 15500 for USD."""
    return _default_calculator.cost_of(kwh)


def round_half_up(value: float, places: int = 0) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def gauge_percentage(value: float, maximum: float) -> float:
    """Fill percentage of a gauge, capped at 100."""
    if maximum <= 0:
        return 0.0
    return min(value / maximum * 100, 100.0)


def frequency_status(hz: float) -> str:
    return "Stable" if 49 <= hz <= 51 else "Unstable"


def power_factor_status(pf: float) -> str:
    return "Good" if pf > 0.8 else "Poor"


def energy_status(kwh: float) -> str:
    return "Efficient" if kwh < 2 else "High"


def power_factor_rating(pf: float) -> str:
    if pf >= 0.95:
        return "Excellent"
    if pf >= 0.85:
        return "Good"
    return "Fair"


def percent_change(current: float, previous: float) -> float:
    """Relative change in percent; 0 when there is no positive baseline."""
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def savings_potential(total_energy: float, rate: float = SAVINGS_RATE_USD_PER_KWH) -> int:
    """Whole-dollar monthly savings estimate."""
    return int(round_half_up(total_energy * rate))
