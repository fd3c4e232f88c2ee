import logging
import os
import sys
from typing import Dict, Iterable

from sqlalchemy import inspect, text
from sqlmodel import Session, create_engine

DB_PATH = os.environ.get("CABLEHUB_DB_PATH", "data/cablehub.db")
engine = create_engine(f"sqlite:///{DB_PATH}", echo=False)
logger = logging.getLogger("app")

# Only the columns the reconciliation endpoints strictly depend on
DEFAULT_REQUIRED_SCHEMA: Dict[str, Iterable[str]] = {
    "drum": {
        "id",
        "drum_number",
        "initial_quantity",
        "calculation_method",
        "manual_wastage_override",
    },
    "drum_usage": {
        "id",
        "drum_id",
        "start_point",
        "end_point",
        "usage_date",
    },
}


def verify_schema_or_exit(engine, required_schema: dict | None = None) -> None:
    """
    Check that the expected tables and columns exist.
    Missing entries are logged and the process exits.

    required_schema: Dict[str, Iterable[str]]
      e.g. {"drum": ["id", "initial_quantity"]}
    """
    if required_schema is None:
        required_schema = DEFAULT_REQUIRED_SCHEMA

    try:
        inspector = inspect(engine)
        existing_tables = inspector.get_table_names()
    except Exception as exc:
        logger.error("[DB] Could not create schema inspector: %s", exc, exc_info=True)
        logger.warning("[DB] Inspector unavailable, skipping schema check")
        return

    missing = []
    for table, cols in required_schema.items():
        if table not in existing_tables:
            missing.append(f"Missing table: {table}")
            continue
        existing_cols = {c["name"] for c in inspector.get_columns(table)}
        for col in cols:
            if col not in existing_cols:
                missing.append(f"Missing column: {table}.{col}")

    if missing:
        logger.error("[DB] Schema validation failed")
        for item in missing:
            logger.error("[DB] %s", item)
        logger.error("[DB] Database file: %s", DB_PATH)
        logger.error("[DB] Fix: run `alembic upgrade head`. Server will exit.")
        sys.exit(1)


def run_migrations() -> None:
    """Run Alembic migrations up to head."""
    logger.info("Running Alembic migrations...")
    try:
        from alembic import command
        from alembic.config import Config
        from alembic.script import ScriptDirectory
    except ImportError:
        logger.warning("Alembic not installed, skipping migrations.")
        return

    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    alembic_ini = os.path.join(base_dir, "alembic.ini")
    if not os.path.exists(alembic_ini):
        logger.warning("alembic.ini not found, skipping migrations.")
        return
    cfg = Config(alembic_ini)
    cfg.set_main_option("sqlalchemy.url", f"sqlite:///{DB_PATH}")
    cfg.set_main_option("script_location", os.path.join(base_dir, "alembic"))

    with engine.begin() as conn:
        has_version = bool(
            conn.exec_driver_sql(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='alembic_version'"
            ).fetchone()
        )
        has_drum = bool(
            conn.exec_driver_sql(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='drum'"
            ).fetchone()
        )
    if not has_version and has_drum:
        logger.info("Existing tables without alembic_version found, stamping head.")
        command.stamp(cfg, "head")
        return

    if has_version:
        with engine.connect() as conn:
            current = conn.exec_driver_sql("SELECT version_num FROM alembic_version").fetchone()
        heads = ScriptDirectory.from_config(cfg).get_heads()
        if current and len(heads) == 1 and current[0] == heads[0]:
            logger.info("Database already at head (%s), no migrations needed.", current[0])
            return

    command.upgrade(cfg, "head")
    logger.info("[DB] Alembic upgrade head completed.")


def init_db() -> None:
    """
    Enable SQLite constraints and run migrations.
    Tables are managed exclusively through Alembic.
    """
    logger.info("Initializing database...")
    db_dir = os.path.dirname(DB_PATH)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir, exist_ok=True)

    try:
        with engine.connect() as conn:
            conn.execute(text("PRAGMA foreign_keys=ON"))
    except Exception as exc:
        logger.error("Could not enable foreign keys: %s", exc)

    try:
        run_migrations()
    except Exception as exc:
        logger.error("Migrations failed: %s", exc, exc_info=True)
        logger.error("Server will exit because migrations failed.")
        sys.exit(1)

    verify_schema_or_exit(engine)
    logger.info("[STARTUP] Database ready | migrations OK | schema OK")


def get_session():
    """
    Dependency for FastAPI routes.
    """
    with Session(engine) as session:
        yield session
