"""
skillswap.api.__main__ — Entry point for ``python -m skillswap.api``
======================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml for the port.
3. Hand the app to uvicorn; the lifespan hook creates tables and seeds.
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from skillswap.config import load_config

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("skillswap")


def main() -> None:
    load_dotenv()
    cfg = load_config()
    logger.info("Starting %s API on port %d", cfg.app_name, cfg.api_port)
    uvicorn.run(
        "skillswap.api.main:app",
        host="0.0.0.0",
        port=cfg.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
