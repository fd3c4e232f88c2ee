import logging
import os

import uvicorn

# Load .env early so variables like CABLEHUB_DB_PATH are set before the app
# modules create the database engine.
from dotenv import load_dotenv

load_dotenv(override=True)

from app.config import load_config  # noqa: E402

logger = logging.getLogger("app")


def get_server_bind(cfg):
    host = os.getenv("HOST") or cfg.get("server", {}).get("host") or "0.0.0.0"
    port_val = os.getenv("PORT") or cfg.get("server", {}).get("port") or 8090
    try:
        port = int(port_val)
    except (TypeError, ValueError):
        port = 8090
    return host, port


# Development reload is CLI-only:
# uvicorn app.main:app --reload --port 8090
def start():
    host, port = get_server_bind(load_config())
    logger.info("Starting CableHub on %s:%s (reload disabled)", host, port)
    try:
        uvicorn.run(
            "app.main:app",
            host=host,
            port=port,
            reload=False,
            log_level="info",
        )
    except OSError as exc:
        if exc.errno in (98, 10048):
            logger.error("Port %s already in use. Set PORT env to a free port or stop the other process.", port)
            return
        raise


if __name__ == "__main__":
    start()
