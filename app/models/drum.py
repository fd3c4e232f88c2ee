from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import SQLModel, Field as SQLField

from app.services.wastage.types import CalculationMethod


DRUM_STATUSES = {"active", "inactive", "empty"}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DrumBase(SQLModel):
    drum_number: str = SQLField(index=True, unique=True)
    item_name: Optional[str] = None  # cable type, e.g. "2 pair drop wire"

    initial_quantity: float  # rated capacity in meters
    current_quantity: Optional[float] = None  # last counted stock, informational
    status: str = "active"

    # Wastage preference, written only through the wastage settings endpoint
    calculation_method: str = CalculationMethod.SMART_SEGMENTS.value
    manual_wastage_override: Optional[float] = None

    received_date: Optional[datetime] = None
    created_at: datetime = SQLField(default_factory=utc_now)
    updated_at: Optional[datetime] = None


class Drum(DrumBase, table=True):
    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)


class DrumUsageBase(SQLModel):
    drum_id: str = SQLField(foreign_key="drum.id", index=True)

    # Footage marks where the pull started/stopped; direction is not guaranteed
    start_point: Optional[float] = None
    end_point: Optional[float] = None
    usage_date: Optional[datetime] = None

    quantity_used: Optional[float] = None  # as typed on the line form
    line_reference: Optional[str] = None  # telephone number / line id
    created_at: datetime = SQLField(default_factory=utc_now)


class DrumUsage(DrumUsageBase, table=True):
    __tablename__ = "drum_usage"  # type: ignore[reportAssignmentType]
    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)


class DrumCreateSchema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    drum_number: str
    item_name: str | None = None
    initial_quantity: float = Field(..., gt=0)
    current_quantity: float | None = Field(None, ge=0)
    status: str = "active"
    calculation_method: CalculationMethod | None = None
    received_date: datetime | None = None

    @field_validator("drum_number")
    def drum_number_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("drum_number must not be empty")
        return v.strip()

    @field_validator("status")
    def status_known(cls, v: str) -> str:
        normalized = (v or "").strip().lower()
        if normalized not in DRUM_STATUSES:
            raise ValueError(f"status must be one of {sorted(DRUM_STATUSES)}")
        return normalized


class DrumReadSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    drum_number: str
    item_name: str | None = None
    initial_quantity: float
    current_quantity: float | None = None
    status: str
    calculation_method: str
    manual_wastage_override: float | None = None
    received_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DrumUsageReadSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    drum_id: str
    start_point: float | None = None
    end_point: float | None = None
    usage_date: datetime | None = None
    quantity_used: float | None = None
    line_reference: str | None = None


class WastageSettingsSchema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    calculation_method: CalculationMethod = Field(..., alias="calculationMethod")
    manual_wastage_override: float | None = Field(None, alias="manualWastageOverride")


class WastageValidateSchema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    manual_wastage_override: float = Field(..., alias="manualWastageOverride")
