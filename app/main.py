import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_logging_config
from app.logging.runtime import reconfigure_logging

# Logging configuration from config.yaml
reconfigure_logging(get_logging_config())
log_formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s")
console_handler = logging.StreamHandler()
console_handler.setFormatter(log_formatter)
logging.getLogger().addHandler(console_handler)
# access logs stay out of app.log
for h in list(logging.getLogger("uvicorn.access").handlers):
    logging.getLogger("uvicorn.access").removeHandler(h)

# -----------------------------------------------------
# ROUTER & MODULE IMPORTS
# -----------------------------------------------------
from app.database import init_db  # noqa: E402
from app.routes.drums import router as drums_router  # noqa: E402
from app.routes.settings_routes import router as settings_router  # noqa: E402


# -----------------------------------------------------
# FASTAPI APP
# -----------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logging.getLogger("app").info("[APP] Startup complete, CableHub is ready")
    yield


app = FastAPI(
    title="CableHub",
    description="Cable drum tracking and wastage reconciliation for installation contractors",
    version="0.1.0",
    lifespan=lifespan,
)


# -----------------------------------------------------
# HEALTH CHECK
# -----------------------------------------------------
@app.get("/ping")
async def ping():
    return {"status": "ok"}


@app.get("/health")
async def health():
    """Health check endpoint for container monitoring"""
    return {"status": "healthy", "service": "cablehub"}


# -----------------------------------------------------
# ROUTES - API
# -----------------------------------------------------
app.include_router(drums_router)
app.include_router(settings_router)
