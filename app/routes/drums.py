import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from app.database import get_session
from app.models.drum import (
    Drum,
    DrumCreateSchema,
    DrumReadSchema,
    WastageSettingsSchema,
    WastageValidateSchema,
)
from app.routes.settings_routes import NEW_DRUM_METHODS, get_wastage_defaults
from app.services import drum_usage_service
from app.services.wastage import (
    CalculationMethod,
    ManualWastageError,
    OverrideValidation,
    UnknownCalculationMethodError,
    WastageCalculationResult,
)

router = APIRouter(prefix="/api/drums", tags=["Drums"])
logger = logging.getLogger("drums")


def _get_drum_or_404(session: Session, drum_id: str) -> Drum:
    drum = session.get(Drum, drum_id)
    if not drum:
        raise HTTPException(status_code=404, detail="Drum not found")
    return drum


@router.get("/", response_model=List[DrumReadSchema])
def list_drums(session: Session = Depends(get_session)):
    return session.exec(select(Drum).order_by(Drum.drum_number)).all()


@router.post("/", response_model=DrumReadSchema, status_code=status.HTTP_201_CREATED)
def create_drum(data: DrumCreateSchema, session: Session = Depends(get_session)):
    exists = session.exec(select(Drum).where(Drum.drum_number == data.drum_number)).first()
    if exists:
        raise HTTPException(status_code=409, detail=f"Drum {data.drum_number} already exists")

    method = data.calculation_method or get_wastage_defaults(session).default_method
    if method not in NEW_DRUM_METHODS:
        raise HTTPException(status_code=400, detail="legacy_gaps is only available for historical drums")

    payload = data.model_dump(exclude={"calculation_method"})
    if payload.get("current_quantity") is None:
        payload["current_quantity"] = data.initial_quantity
    drum = Drum(**payload, calculation_method=method.value)
    try:
        session.add(drum)
        session.commit()
        session.refresh(drum)
    except Exception as e:
        session.rollback()
        logger.exception("Failed to create drum %s", data.drum_number)
        raise HTTPException(status_code=500, detail=f"Failed to create drum: {e}")
    logger.info("Drum %s created with %sm (%s)", drum.drum_number, drum.initial_quantity, drum.calculation_method)
    return drum


@router.get("/{drum_id}", response_model=DrumReadSchema)
def get_drum(drum_id: str, session: Session = Depends(get_session)):
    return _get_drum_or_404(session, drum_id)


@router.get("/{drum_id}/usage")
def get_drum_usage(drum_id: str, session: Session = Depends(get_session)):
    """
    Usage records of a drum together with the wastage calculation
    selected in its settings.
    """
    drum = _get_drum_or_404(session, drum_id)
    try:
        return drum_usage_service.build_usage_report(session, drum)
    except UnknownCalculationMethodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ManualWastageError as e:
        # stored override no longer fits the recorded usage
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/{drum_id}/wastage", response_model=WastageCalculationResult)
def preview_wastage(
    drum_id: str,
    method: Optional[CalculationMethod] = None,
    manual_wastage_override: Optional[float] = None,
    session: Session = Depends(get_session),
):
    """
    Calculate with another method or override without storing anything.

    GET /api/drums/{drum_id}/wastage?method=legacy_gaps
    GET /api/drums/{drum_id}/wastage?manual_wastage_override=120 (implies manual_override)
    """
    drum = _get_drum_or_404(session, drum_id)
    if manual_wastage_override is not None:
        if method is None:
            method = CalculationMethod.MANUAL_OVERRIDE
        elif method is not CalculationMethod.MANUAL_OVERRIDE:
            raise HTTPException(
                status_code=400,
                detail=f"manual_wastage_override only applies to manual_override, not {method.value}",
            )
    try:
        return drum_usage_service.calculate_for_drum(session, drum, method, manual_wastage_override)
    except UnknownCalculationMethodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ManualWastageError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{drum_id}/wastage-settings/validate", response_model=OverrideValidation)
def validate_wastage_override(drum_id: str, data: WastageValidateSchema, session: Session = Depends(get_session)):
    """Inline feedback while the operator types an override."""
    drum = _get_drum_or_404(session, drum_id)
    high_percent = get_wastage_defaults(session).high_wastage_percent
    return drum_usage_service.validate_override_for_drum(session, drum, data.manual_wastage_override, high_percent)


@router.patch("/{drum_id}/wastage-settings", response_model=WastageCalculationResult)
def update_wastage_settings(drum_id: str, data: WastageSettingsSchema, session: Session = Depends(get_session)):
    drum = _get_drum_or_404(session, drum_id)
    high_percent = get_wastage_defaults(session).high_wastage_percent
    try:
        return drum_usage_service.apply_wastage_settings(
            session,
            drum,
            data.calculation_method,
            data.manual_wastage_override,
            high_percent,
        )
    except ManualWastageError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UnknownCalculationMethodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update wastage settings: {e}")
