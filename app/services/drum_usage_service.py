"""
Bridge between stored drums/usage records and the wastage calculators.

Reads are side-effect free. The only write is the wastage preference of a
drum, which replaces method and override together in a single commit.
"""

import logging
from typing import Any, List, Optional

from sqlmodel import Session, select

from app.models.drum import Drum, DrumReadSchema, DrumUsage, DrumUsageReadSchema, utc_now
from app.services.wastage import (
    CalculationMethod,
    ManualWastageError,
    OverrideValidation,
    WastageCalculationResult,
    calculate_drum_wastage,
    calculate_smart_wastage,
    validate_manual_wastage,
)

logger = logging.getLogger("drums")


def list_usage_records(session: Session, drum_id: str) -> List[DrumUsage]:
    stmt = (
        select(DrumUsage)
        .where(DrumUsage.drum_id == drum_id)
        .order_by(DrumUsage.usage_date, DrumUsage.created_at)
    )
    return list(session.exec(stmt).all())


def calculate_for_drum(
    session: Session,
    drum: Drum,
    method: Optional[Any] = None,
    manual_wastage_override: Optional[float] = None,
) -> WastageCalculationResult:
    records = list_usage_records(session, drum.id)
    result = calculate_drum_wastage(records, drum, method=method, manual_wastage_override=manual_wastage_override)
    logger.debug(
        "Drum %s: %s used=%s wastage=%s remaining=%s",
        drum.drum_number,
        result.calculation_method.value,
        result.total_used,
        result.total_wastage,
        result.calculated_current_quantity,
    )
    return result


def build_usage_report(session: Session, drum: Drum) -> dict:
    records = list_usage_records(session, drum.id)
    calculation = calculate_drum_wastage(records, drum)
    return {
        "drum": DrumReadSchema.model_validate(drum).model_dump(mode="json"),
        "usage_records": [DrumUsageReadSchema.model_validate(r).model_dump(mode="json") for r in records],
        "calculation": calculation.model_dump(mode="json", by_alias=True),
    }


def validate_override_for_drum(
    session: Session,
    drum: Drum,
    manual_wastage_override: Optional[float],
    high_wastage_percent: Optional[float] = None,
) -> OverrideValidation:
    """Validate an override against the cable the usage records really consumed."""
    if manual_wastage_override is None:
        return OverrideValidation(is_valid=False, error="A wastage value is required for manual override")
    records = list_usage_records(session, drum.id)
    total_used = calculate_smart_wastage(records, drum.initial_quantity).total_used
    return validate_manual_wastage(manual_wastage_override, total_used, drum.initial_quantity, high_wastage_percent)


def apply_wastage_settings(
    session: Session,
    drum: Drum,
    calculation_method: CalculationMethod,
    manual_wastage_override: Optional[float],
    high_wastage_percent: Optional[float] = None,
) -> WastageCalculationResult:
    """
    Validate, persist and recompute the wastage preference of a drum.

    Raises:
        ManualWastageError: override invalid; nothing was written
    """
    if calculation_method is CalculationMethod.MANUAL_OVERRIDE:
        validation = validate_override_for_drum(session, drum, manual_wastage_override, high_wastage_percent)
        if not validation.is_valid:
            logger.info("Rejected wastage override %s for drum %s: %s", manual_wastage_override, drum.drum_number, validation.error)
            raise ManualWastageError(validation)
        stored_override = manual_wastage_override
    else:
        # an override only means something together with its method
        stored_override = None

    drum.calculation_method = calculation_method.value
    drum.manual_wastage_override = stored_override
    drum.updated_at = utc_now()
    try:
        session.add(drum)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Could not store wastage settings for drum %s", drum.id)
        raise
    session.refresh(drum)
    logger.info(
        "Drum %s wastage settings: method=%s override=%s",
        drum.drum_number,
        drum.calculation_method,
        drum.manual_wastage_override,
    )
    return calculate_for_drum(session, drum)
