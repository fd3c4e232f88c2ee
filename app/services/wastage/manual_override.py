"""
Plausibility check for an operator-entered wastage figure.

Runs live while the operator types and again right before the drum settings
are stored. A stored override must always pass it.
"""

from decimal import Decimal
from typing import Any, Optional

from .segments import ZERO, format_meters, to_meters
from .types import OverrideValidation

DEFAULT_HIGH_WASTAGE_PERCENT = Decimal("20")


def validate_manual_wastage(
    candidate_wastage: Any,
    total_used: Any,
    initial_quantity: Any,
    high_wastage_percent: Optional[Any] = None,
) -> OverrideValidation:
    """
    Args:
        candidate_wastage: Wastage figure the operator wants to record (m)
        total_used: Cable already consumed according to the usage records (m)
        initial_quantity: Rated drum capacity (m)
        high_wastage_percent: Share of capacity above which a valid figure
            still gets a warning

    Returns:
        OverrideValidation; ``is_valid`` False carries an ``error`` text.
    """
    wastage = to_meters(candidate_wastage)
    if wastage is None:
        return OverrideValidation(is_valid=False, error="Wastage must be a number")

    # (a) negative stock would appear out of nowhere
    if wastage < ZERO:
        return OverrideValidation(is_valid=False, error="Wastage cannot be negative")

    used = to_meters(total_used) or ZERO
    capacity = to_meters(initial_quantity) or ZERO

    # (b) more cable than the drum ever held
    if used + wastage > capacity:
        max_wastage = capacity - used
        return OverrideValidation(
            is_valid=False,
            error=f"Wastage cannot exceed {format_meters(max_wastage)}m (remaining capacity after usage)",
            adjusted_value=max(ZERO, max_wastage),
        )

    threshold = to_meters(high_wastage_percent)
    if threshold is None:
        threshold = DEFAULT_HIGH_WASTAGE_PERCENT
    if capacity > ZERO:
        percentage = wastage / capacity * 100
        if percentage > threshold:
            return OverrideValidation(
                is_valid=True,
                warning=f"Wastage is {percentage:.1f}% of drum capacity, which seems high",
            )

    return OverrideValidation(is_valid=True)
