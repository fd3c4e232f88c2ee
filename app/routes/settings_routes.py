import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.config import get_wastage_config
from app.database import get_session
from app.models.settings import Setting, WastageDefaultsSchema
from app.services.wastage.types import CalculationMethod

router = APIRouter(prefix="/api/settings", tags=["Settings"])
logger = logging.getLogger("app")

DEFAULT_METHOD_KEY = "wastage.default_method"
HIGH_WASTAGE_KEY = "wastage.high_wastage_percent"
# legacy gap accounting only exists for drums audited before segment merging
NEW_DRUM_METHODS = {CalculationMethod.SMART_SEGMENTS, CalculationMethod.MANUAL_OVERRIDE}


def get_setting(session: Session, key: str, default: str | None = None) -> str | None:
    setting = session.exec(select(Setting).where(Setting.key == key)).first()
    if setting:
        return setting.value
    if default is not None:
        setting = Setting(key=key, value=default)
        session.add(setting)
        session.commit()
        session.refresh(setting)
        return setting.value
    return None


def set_setting(session: Session, key: str, value: str) -> None:
    setting = session.exec(select(Setting).where(Setting.key == key)).first()
    if setting:
        setting.value = value
    else:
        setting = Setting(key=key, value=value)
        session.add(setting)
    session.commit()


def _normalize_float(value: str | None, default: float, minimum: float | None = None, maximum: float | None = None) -> float:
    try:
        normalized = float(str(value))
    except (TypeError, ValueError):
        return default
    if minimum is not None and normalized < minimum:
        return default
    if maximum is not None and normalized > maximum:
        return default
    return normalized


def _normalize_new_drum_method(value: str | None, default: CalculationMethod) -> CalculationMethod:
    try:
        method = CalculationMethod(str(value).strip().lower())
    except ValueError:
        return default
    return method if method in NEW_DRUM_METHODS else default


def get_wastage_defaults(session: Session) -> WastageDefaultsSchema:
    """Operator settings from the database, seeded from config.yaml."""
    cfg = get_wastage_config()
    fallback_method = _normalize_new_drum_method(cfg["default_method"], CalculationMethod.SMART_SEGMENTS)
    fallback_percent = _normalize_float(cfg["high_wastage_percent"], 20.0, minimum=0, maximum=100)

    method = get_setting(session, DEFAULT_METHOD_KEY, fallback_method.value)
    percent = get_setting(session, HIGH_WASTAGE_KEY, str(fallback_percent))
    return WastageDefaultsSchema(
        default_method=_normalize_new_drum_method(method, fallback_method),
        high_wastage_percent=_normalize_float(percent, fallback_percent, minimum=0, maximum=100),
    )


@router.get("/wastage", response_model=WastageDefaultsSchema)
def read_wastage_defaults(session: Session = Depends(get_session)):
    return get_wastage_defaults(session)


@router.put("/wastage", response_model=WastageDefaultsSchema)
def update_wastage_defaults(data: WastageDefaultsSchema, session: Session = Depends(get_session)):
    if data.default_method not in NEW_DRUM_METHODS:
        raise HTTPException(status_code=400, detail="legacy_gaps cannot be the default for new drums")
    set_setting(session, DEFAULT_METHOD_KEY, data.default_method.value)
    set_setting(session, HIGH_WASTAGE_KEY, str(data.high_wastage_percent))
    logger.info(
        "Wastage defaults updated: method=%s high_wastage_percent=%s",
        data.default_method.value,
        data.high_wastage_percent,
    )
    return get_wastage_defaults(session)
