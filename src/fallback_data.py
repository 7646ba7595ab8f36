#!/usr/bin/env python3
"""
Fallback datasets shown when the backend is unreachable or returns nothing.

The analysis page substitutes these sample sets; the other pages fall back
to the zeroed placeholders built by the record classes themselves.
"""

from typing import List

from power_models import LoadPatternDay, PeakUsagePoint

DUMMY_PEAK_DATA: List[PeakUsagePoint] = [
    PeakUsagePoint(time="18:11", usage=365),
    PeakUsagePoint(time="18:12", usage=395),
    PeakUsagePoint(time="18:13", usage=455),
    PeakUsagePoint(time="18:13", usage=375),
    PeakUsagePoint(time="18:14", usage=505),
    PeakUsagePoint(time="18:14", usage=525),
    PeakUsagePoint(time="18:14", usage=610),
]

DUMMY_LOAD_PATTERN: List[LoadPatternDay] = [
    LoadPatternDay(day="Mon", morning=365, afternoon=455, evening=610),
    LoadPatternDay(day="Tue", morning=395, afternoon=375, evening=525),
    LoadPatternDay(day="Wed", morning=365, afternoon=505, evening=455),
    LoadPatternDay(day="Thu", morning=455, afternoon=610, evening=395),
    LoadPatternDay(day="Fri", morning=375, afternoon=525, evening=505),
    LoadPatternDay(day="Sat", morning=505, afternoon=365, evening=610),
    LoadPatternDay(day="Sun", morning=525, afternoon=395, evening=455),
]

DEFAULT_POWER_FACTOR = 0.95
DEFAULT_PEAK_HOURS = "8PM - 10PM"
FALLBACK_PEAK_HOUR = "6PM - 7PM"
