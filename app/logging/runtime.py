import logging
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict

LOG_ROOT = Path("logs")
MODULES = ["app", "drums", "errors"]
LOG_FORMATTER = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s")
_CURRENT_HANDLERS: Dict[str, logging.Handler] = {}


def _get_level(level_str: str) -> int:
    lvl = (level_str or "").upper()
    if lvl in {"DEBUG", "INFO", "WARNING", "ERROR"}:
        return getattr(logging, lvl)
    return logging.INFO


def _module_log_file(module_name: str) -> Path:
    return LOG_ROOT / module_name / f"{module_name}.log"


def _cleanup_old_logs(keep_days: int) -> None:
    if keep_days <= 0:
        return
    cutoff = time.time() - keep_days * 86400
    for module_name in MODULES:
        for file_path in (LOG_ROOT / module_name).glob(f"{module_name}.log.*"):
            try:
                if file_path.is_file() and file_path.stat().st_mtime < cutoff:
                    file_path.unlink()
            except OSError:
                pass


def _clear_handlers() -> None:
    for logger_name, handler in list(_CURRENT_HANDLERS.items()):
        logger_obj = logging.getLogger(logger_name)
        if handler in logger_obj.handlers:
            logger_obj.removeHandler(handler)
        handler.close()
    _CURRENT_HANDLERS.clear()


def _build_handler(path: Path, level: int, max_size_mb: int, backup_count: int) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(LOG_FORMATTER)
    return handler


def reconfigure_logging(logging_config: dict) -> Dict[str, bool]:
    """
    (Re)install one rotating file per module logger.

    The "errors" module collects ERROR records of every logger, so it is
    attached to the root logger instead of a named one.
    """
    enabled = bool(logging_config.get("enabled", True))
    level = _get_level(logging_config.get("level", "INFO"))
    max_size_mb = max(1, int(logging_config.get("max_size_mb", 10)))
    backup_count = max(1, int(logging_config.get("backup_count", 3)))
    keep_days = int(logging_config.get("keep_days", 0))
    modules_cfg = logging_config.get("modules", {}) or {}

    _clear_handlers()

    statuses: Dict[str, bool] = {}
    for module_name in MODULES:
        module_entry = modules_cfg.get(module_name, {}) or {}
        final_enabled = enabled and bool(module_entry.get("enabled", True))
        statuses[module_name] = final_enabled

        if module_name == "errors":
            target_name, handler_level = "", logging.ERROR
        else:
            target_name, handler_level = module_name, level
            module_logger = logging.getLogger(module_name)
            module_logger.disabled = not final_enabled
            module_logger.setLevel(level if final_enabled else logging.CRITICAL + 10)

        if not final_enabled:
            continue
        handler = _build_handler(_module_log_file(module_name), handler_level, max_size_mb, backup_count)
        logging.getLogger(target_name).addHandler(handler)
        _CURRENT_HANDLERS[target_name] = handler

    if enabled:
        _cleanup_old_logs(keep_days)
    logging.getLogger().setLevel(level if enabled else logging.CRITICAL + 10)
    return statuses
