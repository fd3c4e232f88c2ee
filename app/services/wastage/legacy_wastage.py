"""
Chronological gap accounting, kept for drums audited before segment merging
existed. Never the default for new drums.

Pulls are assumed to move along the drum in one direction over time. Any jump
between the furthest mark of one pull and the start mark of the next pull is
booked as waste. Bidirectional pulls therefore overestimate waste, which the
historical figures already contain.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from .segments import ZERO, is_inactive, normalize_usage, read_marks, read_usage_date, to_meters
from .smart_wastage import integrity_issues, remaining_after_highest_mark
from .types import CalculationMethod, Segment, WastageCalculationResult

logger = logging.getLogger("drums")


def _chronological_key(record: Any) -> tuple:
    usage_date = read_usage_date(record)
    # undated pulls first, then by date; sorted() keeps input order on ties
    return (usage_date is not None, usage_date or datetime.min)


def calculate_legacy_wastage(
    usage_records: Iterable[Any],
    initial_quantity: Any,
    drum_status: Optional[str] = None,
) -> WastageCalculationResult:
    """
    Args:
        usage_records: Pulls against the drum, in any order
        initial_quantity: Rated capacity of the drum (m)
        drum_status: An "inactive" drum is written off: the cable beyond the
            highest mark is booked as waste
    """
    capacity = to_meters(initial_quantity) or ZERO
    ordered = sorted(usage_records, key=_chronological_key)

    total_used = ZERO
    total_wastage = ZERO
    usage_segments: List[Segment] = []
    wasted_segments: List[Segment] = []
    intervals = []
    last_mark: Optional[Decimal] = None

    for record in ordered:
        interval = normalize_usage(record)
        # unusable marks take part in the gap chain as a zero-length pull at 0
        start, end = read_marks(record) or (interval.low, interval.high)
        intervals.append(interval)

        actual_usage = abs(end - start)
        total_used += actual_usage
        usage_segments.append(
            Segment(
                start=interval.low,
                end=interval.high,
                length=actual_usage,
                usage_id=interval.usage_id,
                usage_date=interval.usage_date,
            )
        )

        if last_mark is not None:
            gap = abs(start - last_mark)
            if gap > ZERO:
                total_wastage += gap
                wasted_segments.append(Segment(start=min(start, last_mark), end=max(start, last_mark), length=gap))

        # progression is tracked by the furthest mark of the pull
        last_mark = max(start, end)

    remaining_cable = remaining_after_highest_mark(intervals, capacity)
    if is_inactive(drum_status) and remaining_cable > ZERO:
        highest_mark = capacity - remaining_cable
        total_wastage += remaining_cable
        wasted_segments.append(Segment(start=highest_mark, end=capacity, length=remaining_cable))

    remainder = capacity - total_used - total_wastage
    issues = integrity_issues(capacity, total_used, total_wastage, remainder)
    if issues:
        logger.warning("Legacy drum accounting inconsistent with capacity: %s", issues[0])

    return WastageCalculationResult(
        total_used=total_used,
        total_wastage=total_wastage,
        calculated_current_quantity=remainder,
        remaining_cable=remaining_cable,
        usage_segments=usage_segments,
        wasted_segments=wasted_segments,
        calculation_method=CalculationMethod.LEGACY_GAPS,
        issues=issues,
    )
