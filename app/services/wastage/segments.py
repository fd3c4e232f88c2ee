"""
Footage intervals on a cable drum: normalization, merging and complement.
"""

import logging
import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .types import NormalizedInterval, Segment

__all__ = [
    "to_meters",
    "format_meters",
    "read_usage_date",
    "read_marks",
    "normalize_usage",
    "merge_intervals",
    "complement_segments",
    "sum_lengths",
    "is_inactive",
]

logger = logging.getLogger("drums")

QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")


def to_meters(value: Any) -> Optional[Decimal]:
    """Convert a footage value to quantized meters, None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        meters = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not meters.is_finite():
        return None
    try:
        return meters.quantize(QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def format_meters(value: Decimal) -> str:
    # 400.00 -> "400", 12.50 -> "12.5"
    text = f"{value.normalize():f}"
    return "0" if text in ("-0", "") else text


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def is_inactive(status: Any) -> bool:
    return str(status or "").strip().lower() == "inactive"


def read_usage_date(record: Any) -> Optional[datetime]:
    """Usage date as a naive UTC datetime; ISO strings are accepted."""
    value = _field(record, "usage_date")
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def read_marks(record: Any) -> Optional[tuple]:
    """Raw (start, end) marks of a record, None when either is unusable."""
    start = to_meters(_field(record, "start_point"))
    end = to_meters(_field(record, "end_point"))
    if start is None or end is None:
        return None
    return start, end


def normalize_usage(record: Any) -> NormalizedInterval:
    usage_id = _field(record, "id")
    usage_id = str(usage_id) if usage_id is not None else None
    usage_date = read_usage_date(record)

    marks = read_marks(record)
    if marks is None:
        # one broken historical pull must not block the whole drum
        logger.debug("Usage %s has unusable footage marks, treated as zero length", usage_id)
        return NormalizedInterval(ZERO, ZERO, usage_id, usage_date)

    start, end = marks
    return NormalizedInterval(min(start, end), max(start, end), usage_id, usage_date)


def _earlier(a: Optional[datetime], b: Optional[datetime]) -> bool:
    if a is None:
        return False
    return b is None or a < b


def merge_intervals(intervals: Iterable[NormalizedInterval]) -> List[Segment]:
    """
    Union of footage intervals as a minimal, sorted list of disjoint segments.

    Touching intervals are merged. Zero-length intervals never open a segment
    of their own. The sort is stable, so equal keys keep their input order.
    """
    ordered = sorted(
        (iv for iv in intervals if iv.high > iv.low),
        key=lambda iv: (iv.low, iv.high),
    )
    if not ordered:
        return []

    merged: List[Segment] = []
    first = ordered[0]
    low, high = first.low, first.high
    usage_id, usage_date = first.usage_id, first.usage_date

    for interval in ordered[1:]:
        if interval.low <= high:
            high = max(high, interval.high)
            if _earlier(interval.usage_date, usage_date):
                usage_id, usage_date = interval.usage_id, interval.usage_date
            continue
        merged.append(Segment(start=low, end=high, length=high - low, usage_id=usage_id, usage_date=usage_date))
        low, high = interval.low, interval.high
        usage_id, usage_date = interval.usage_id, interval.usage_date

    merged.append(Segment(start=low, end=high, length=high - low, usage_id=usage_id, usage_date=usage_date))
    return merged


def complement_segments(used: Sequence[Segment], capacity: Decimal) -> List[Segment]:
    """
    Gaps before, between and after the used segments inside [0, capacity].

    Expects the output of ``merge_intervals``. Zero-length gaps are skipped.
    With no used segments the whole drum is one gap.
    """
    if not used:
        if capacity > ZERO:
            return [Segment(start=ZERO, end=capacity, length=capacity)]
        return []

    gaps: List[Segment] = []
    cursor = ZERO
    for segment in used:
        gap_start = max(cursor, ZERO)
        gap_end = min(segment.start, capacity)
        if gap_end > gap_start:
            gaps.append(Segment(start=gap_start, end=gap_end, length=gap_end - gap_start))
        cursor = max(cursor, segment.end)

    if cursor < capacity:
        tail_start = max(cursor, ZERO)
        gaps.append(Segment(start=tail_start, end=capacity, length=capacity - tail_start))
    return gaps


def sum_lengths(segments: Iterable[Segment]) -> Decimal:
    return sum((s.length for s in segments), ZERO)
