"""
Segment-based wastage for a drum (recommended method).

The footage axis of the drum is the ground truth: whatever any pull covered is
used, every stretch no pull ever covered is waste. Pulls recorded backwards,
re-measured or overlapping across installers are not double counted.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from .errors import ManualWastageError
from .manual_override import validate_manual_wastage
from .segments import ZERO, complement_segments, format_meters, merge_intervals, normalize_usage, sum_lengths, to_meters
from .types import CalculationMethod, NormalizedInterval, Segment, WastageCalculationResult

logger = logging.getLogger("drums")


def remaining_after_highest_mark(intervals: Iterable[NormalizedInterval], capacity: Decimal) -> Decimal:
    """Cable left beyond the furthest footage mark any pull reached."""
    highest = max((iv.high for iv in intervals), default=ZERO)
    return max(ZERO, capacity - highest)


def integrity_issues(capacity: Decimal, total_used: Decimal, total_wastage: Decimal, remainder: Decimal) -> List[str]:
    if remainder >= ZERO:
        return []
    return [
        f"Recorded usage ({format_meters(total_used)}m) and wastage ({format_meters(total_wastage)}m) "
        f"exceed drum capacity ({format_meters(capacity)}m) by {format_meters(-remainder)}m"
    ]


def calculate_smart_wastage(
    usage_records: Iterable[Any],
    initial_quantity: Any,
    manual_wastage_override: Optional[Any] = None,
) -> WastageCalculationResult:
    """
    Args:
        usage_records: Pulls against the drum (UsageRecord, ORM rows or dicts)
        initial_quantity: Rated capacity of the drum (m)
        manual_wastage_override: Operator figure replacing the computed wastage

    Raises:
        ManualWastageError: the override is negative or exceeds the capacity
    """
    capacity = to_meters(initial_quantity) or ZERO
    intervals = [normalize_usage(record) for record in usage_records]

    used_segments = merge_intervals(intervals)
    total_used = sum_lengths(used_segments)
    remaining_cable = remaining_after_highest_mark(intervals, capacity)

    if manual_wastage_override is not None:
        validation = validate_manual_wastage(manual_wastage_override, total_used, capacity)
        if not validation.is_valid:
            raise ManualWastageError(validation)
        if validation.warning:
            logger.info("Manual wastage override accepted with warning: %s", validation.warning)

        total_wastage = to_meters(manual_wastage_override)
        remainder = capacity - total_used - total_wastage
        # the override carries no geometry
        wasted_segments: List[Segment] = []
        method = CalculationMethod.MANUAL_OVERRIDE
        applied_override: Optional[Decimal] = total_wastage
    else:
        wasted_segments = complement_segments(used_segments, capacity)
        total_wastage = sum_lengths(wasted_segments)
        remainder = capacity - total_used - total_wastage
        method = CalculationMethod.SMART_SEGMENTS
        applied_override = None

    issues = integrity_issues(capacity, total_used, total_wastage, remainder)
    if issues:
        logger.warning("Drum usage inconsistent with capacity: %s", issues[0])

    return WastageCalculationResult(
        total_used=total_used,
        total_wastage=total_wastage,
        calculated_current_quantity=remainder,
        remaining_cable=remaining_cable,
        usage_segments=used_segments,
        wasted_segments=wasted_segments,
        calculation_method=method,
        manual_wastage_override=applied_override,
        issues=issues,
    )
