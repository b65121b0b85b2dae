"""
Process-wide logging configuration.
"""

from __future__ import annotations

import logging

from . import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str | None = None) -> None:
    level_name = (level or settings.log_level()).upper()
    logging.basicConfig(level=level_name, format=LOG_FORMAT)
    logging.getLogger().setLevel(level_name)

    # asyncpg is chatty at DEBUG.
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
