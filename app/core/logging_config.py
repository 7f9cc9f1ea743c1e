"""Logging setup for the API process."""

import logging

from app.core.config import settings

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once; modules log via logging.getLogger(__name__)."""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s — %(levelname)s — %(name)s — %(message)s",
    )
    # SQL echo is controlled by the engine, keep driver chatter down
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("azure").setLevel(logging.WARNING)
    _configured = True
