from __future__ import annotations

import logging
import os


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; configures the root logger once, at MOLVIEW_LOG_LEVEL."""
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        level = logging.getLevelName(os.environ.get("MOLVIEW_LOG_LEVEL", "INFO").strip().upper())
        logging.basicConfig(
            level=level if isinstance(level, int) else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
    return logger
