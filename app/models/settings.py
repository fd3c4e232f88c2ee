from typing import Optional

from pydantic import BaseModel, Field
from sqlmodel import SQLModel, Field as SQLField

from app.services.wastage.types import CalculationMethod


class Setting(SQLModel, table=True):
    key: str = SQLField(primary_key=True)
    value: Optional[str] = None


class WastageDefaultsSchema(BaseModel):
    default_method: CalculationMethod
    high_wastage_percent: float = Field(..., ge=0, le=100)
