"""
onlytalk.__main__ — Entry point for ``python -m onlytalk``
==========================================================

Wiring:
1. Load .env (secrets, DATABASE_URL).
2. Load config.yaml (site identity, port).
3. Create the SQLAlchemy engine, ensure tables exist, seed defaults.
4. Serve the FastAPI app with uvicorn on ``api_port`` (blocking).

Run with::

    python -m onlytalk
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("onlytalk")


def main() -> None:
    """Bootstrap and serve the OnlyTalk API."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    from onlytalk.config import load_config

    try:
        cfg = load_config()
    except FileNotFoundError as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    logger.info("Config loaded — Site: %s (%s)", cfg.site_name, cfg.site_motto)

    # 3. Database (the API module validates JWT_SECRET on import).
    try:
        from onlytalk.api.deps import get_engine
    except RuntimeError as exc:
        logger.critical("%s", exc)
        sys.exit(1)

    from onlytalk.database.engine import init_db

    init_db(get_engine())

    # 4. Serve (blocks until Ctrl+C or SIGTERM).
    uvicorn.run("onlytalk.api.main:app", host="0.0.0.0", port=cfg.api_port)


if __name__ == "__main__":
    main()
