"""
Central selection of the wastage calculation for one drum.
"""

import logging
from typing import Any, Iterable, Mapping, Optional

from .errors import UnknownCalculationMethodError
from .legacy_wastage import calculate_legacy_wastage
from .smart_wastage import calculate_smart_wastage
from .types import CalculationMethod, WastageCalculationResult

logger = logging.getLogger("drums")


def resolve_method(value: Any) -> CalculationMethod:
    if isinstance(value, CalculationMethod):
        return value
    if value is None:
        return CalculationMethod.SMART_SEGMENTS
    try:
        return CalculationMethod(str(value).strip().lower())
    except ValueError:
        raise UnknownCalculationMethodError(value) from None


def _drum_field(drum: Any, name: str) -> Any:
    if isinstance(drum, Mapping):
        return drum.get(name)
    return getattr(drum, name, None)


def calculate_drum_wastage(
    usage_records: Iterable[Any],
    drum: Any,
    method: Optional[Any] = None,
    manual_wastage_override: Optional[Any] = None,
) -> WastageCalculationResult:
    """
    Apply the calculation method stored on the drum to its usage records.

    Args:
        usage_records: All pulls recorded against the drum
        drum: Drum row or mapping with ``initial_quantity``, ``status``,
            ``calculation_method`` and ``manual_wastage_override``
        method: Use this method instead of the stored one (preview)
        manual_wastage_override: Use this figure instead of the stored one

    Returns:
        WastageCalculationResult, same shape for every method
    """
    records = list(usage_records)
    initial_quantity = _drum_field(drum, "initial_quantity")
    selected = resolve_method(method if method is not None else _drum_field(drum, "calculation_method"))

    if selected is CalculationMethod.LEGACY_GAPS:
        return calculate_legacy_wastage(records, initial_quantity, _drum_field(drum, "status"))

    if selected is CalculationMethod.MANUAL_OVERRIDE:
        override = manual_wastage_override
        if override is None:
            override = _drum_field(drum, "manual_wastage_override")
        if override is not None:
            return calculate_smart_wastage(records, initial_quantity, override)

        logger.warning("Drum %s uses manual_override without a stored value, using smart segments", _drum_field(drum, "id"))
        result = calculate_smart_wastage(records, initial_quantity)
        result.issues.append("Manual override selected but no wastage value is stored; computed wastage shown")
        return result

    # the complement already books everything past the highest mark, whatever the status
    return calculate_smart_wastage(records, initial_quantity)
