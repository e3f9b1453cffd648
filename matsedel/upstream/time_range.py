"""
Skolmaten Time Range Module
===========================

Skolmaten only understands menu windows addressed by year, ISO week and a
number of weeks, and a window never crosses into another year. This module
splits an arbitrary date range into such windows.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

from matsedel.core.errors import InvalidRangeError

# Skolmaten never produces week 53; such weeks are requested as week 1.
MAX_WEEK_OF_YEAR = 52


@dataclass(frozen=True)
class SkolmatenTimeRange:
    """One Skolmaten request window."""

    year: int
    week_of_year: int
    count: int


def skolmaten_time_ranges(start: date, end: date) -> list[SkolmatenTimeRange]:
    """
    Split an inclusive date range into per-year Skolmaten windows.

    The week count over-requests by one week, since the upstream tolerates
    asking for too much but silently drops what is not asked for.

    Args:
        start: First date of the range
        end: Last date of the range

    Returns:
        One window per calendar year touched by the range

    Raises:
        InvalidRangeError: If start is after end
    """
    if start > end:
        raise InvalidRangeError(f"start ({start}) cannot be after end ({end})")

    result: list[SkolmatenTimeRange] = []
    segment_start = start

    while True:
        segment_end = end
        if segment_end.year != segment_start.year:
            segment_end = date(segment_start.year, 12, 31)

        count = math.ceil((segment_end - segment_start).days / 7) + 1

        week_of_year = segment_start.isocalendar()[1]
        if week_of_year > MAX_WEEK_OF_YEAR:
            week_of_year = 1

        result.append(
            SkolmatenTimeRange(
                year=segment_start.year,
                week_of_year=week_of_year,
                count=count,
            )
        )

        segment_start = date(segment_start.year + 1, 1, 1)
        if not end > segment_start:
            break

    return result
