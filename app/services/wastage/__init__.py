"""
Drum cable-consumption reconciliation.

Turns the pulls recorded against one cable drum into used, wasted and
remaining meters. Pure computation: no database access, inputs are never
mutated.
"""

from .errors import ManualWastageError, UnknownCalculationMethodError, WastageError
from .legacy_wastage import calculate_legacy_wastage
from .manual_override import validate_manual_wastage
from .segments import complement_segments, merge_intervals, normalize_usage
from .smart_wastage import calculate_smart_wastage
from .types import (
    CalculationMethod,
    NormalizedInterval,
    OverrideValidation,
    Segment,
    UsageRecord,
    WastageCalculationResult,
)
from .wastage_selector import calculate_drum_wastage, resolve_method

__all__ = [
    "CalculationMethod",
    "ManualWastageError",
    "NormalizedInterval",
    "OverrideValidation",
    "Segment",
    "UnknownCalculationMethodError",
    "UsageRecord",
    "WastageCalculationResult",
    "WastageError",
    "calculate_drum_wastage",
    "calculate_legacy_wastage",
    "calculate_smart_wastage",
    "complement_segments",
    "merge_intervals",
    "normalize_usage",
    "resolve_method",
    "validate_manual_wastage",
]
