import logging
from copy import deepcopy
from pathlib import Path

import yaml

logger = logging.getLogger("app")

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config.yaml"

DEFAULT_CONFIG = {
    "server": {
        "host": "0.0.0.0",
        "port": 8090,
    },
    "logging": {
        "enabled": True,
        "level": "INFO",
        "keep_days": 14,
        "max_size_mb": 10,
        "backup_count": 3,
        "modules": {
            "app": {"enabled": True},
            "drums": {"enabled": True},
            "errors": {"enabled": True},
        },
    },
    "wastage": {
        "default_method": "smart_segments",
        "high_wastage_percent": 20,
    },
}


def _merge_dict(defaults: dict, override: dict) -> dict:
    merged = deepcopy(defaults)
    if not isinstance(override, dict):
        return merged
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_dict(merged.get(key, {}), value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict:
    """config.yaml merged over the built-in defaults."""
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        return deepcopy(DEFAULT_CONFIG)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("config.yaml unreadable (%s), using defaults", exc)
        return deepcopy(DEFAULT_CONFIG)
    return _merge_dict(DEFAULT_CONFIG, data)


def get_logging_config(config: dict | None = None) -> dict:
    logging_cfg = (config or load_config()).get("logging", {})
    return {
        "enabled": logging_cfg.get("enabled", True),
        "level": logging_cfg.get("level", "INFO"),
        "keep_days": logging_cfg.get("keep_days", 14),
        "max_size_mb": logging_cfg.get("max_size_mb", 10),
        "backup_count": logging_cfg.get("backup_count", 3),
        "modules": logging_cfg.get("modules", {}),
    }


def get_wastage_config(config: dict | None = None) -> dict:
    wastage_cfg = (config or load_config()).get("wastage", {})
    return {
        "default_method": str(wastage_cfg.get("default_method", "smart_segments")),
        "high_wastage_percent": wastage_cfg.get("high_wastage_percent", 20),
    }
