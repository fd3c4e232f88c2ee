"""
Value types shared by the drum wastage calculators.

All footage values are ``Decimal`` meters quantized to two places, so sums of
segment lengths compare exactly against the drum capacity. JSON output turns
them into plain floats.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, computed_field
from pydantic.alias_generators import to_camel


Meters = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CalculationMethod(str, Enum):
    SMART_SEGMENTS = "smart_segments"
    LEGACY_GAPS = "legacy_gaps"
    MANUAL_OVERRIDE = "manual_override"


@dataclass(frozen=True)
class UsageRecord:
    """One technician pull against a drum, as handed to the calculators.

    ORM rows and plain dicts with the same field names are accepted too.
    """

    id: Optional[str]
    start_point: object
    end_point: object
    usage_date: Optional[datetime] = None


@dataclass(frozen=True)
class NormalizedInterval:
    low: Decimal
    high: Decimal
    usage_id: Optional[str] = None
    usage_date: Optional[datetime] = None

    @property
    def length(self) -> Decimal:
        return self.high - self.low


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Segment(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    start: Meters
    end: Meters
    length: Meters
    # earliest pull merged into a used segment, for traceability only
    usage_id: Optional[str] = None
    usage_date: Optional[datetime] = None


class WastageCalculationResult(_CamelModel):
    total_used: Meters
    total_wastage: Meters
    calculated_current_quantity: Meters
    remaining_cable: Meters
    usage_segments: List[Segment] = Field(default_factory=list)
    wasted_segments: List[Segment] = Field(default_factory=list)
    calculation_method: CalculationMethod
    manual_wastage_override: Optional[Meters] = None
    issues: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def is_consistent(self) -> bool:
        return not self.issues


class OverrideValidation(_CamelModel):
    is_valid: bool
    error: Optional[str] = None
    warning: Optional[str] = None
    # largest override the drum can still absorb, set when the candidate is too big
    adjusted_value: Optional[Meters] = None
