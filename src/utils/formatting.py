#!/usr/bin/env python3
"""
Display formatting helpers for dashboard text output.

Numbers use Indonesian grouping (``.`` for thousands, ``,`` for decimals) for
Rupiah amounts, plain US formatting for dollars, and 24h clock labels in the
local time zone.
"""

from datetime import datetime
from typing import Optional

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def month_name(month: int) -> str:
    """Short month name for 1-12, '?' otherwise."""
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return "?"


def local_time(timestamp: datetime) -> datetime:
    """Aware timestamps are shown in the viewer's local zone; naive ones are taken as-is."""
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone()


def format_time_label(timestamp: Optional[datetime]) -> str:
    """HH:MM chart label, '--:--' when the timestamp is unknown."""
    if timestamp is None:
        return "--:--"
    return local_time(timestamp).strftime("%H:%M")


def format_clock(timestamp: Optional[datetime]) -> str:
    if timestamp is None:
        return "--:--:--"
    return local_time(timestamp).strftime("%H:%M:%S")


def format_datetime(timestamp: Optional[datetime]) -> str:
    if timestamp is None:
        return "N/A"
    return local_time(timestamp).strftime("%d/%m/%Y %H:%M:%S")


def format_rupiah(amount: float, decimals: int = 0) -> str:
    """Format as 'Rp 1.444.700' (id-ID grouping)."""
    text = f"{amount:,.{decimals}f}"
    # swap US separators for Indonesian ones
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"Rp {text}"


def format_usd(amount: float) -> str:
    return f"${amount:,.2f}"


def format_signed_percent(value: float) -> str:
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.1f}%"
