"""
Process logging configuration.
"""

import logging

LOG_LEVELS = {
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def configure_logging(level: str = "info") -> None:
    """Configure root logging; unknown level names fall back to INFO."""
    logging.basicConfig(
        level=LOG_LEVELS.get(level.lower(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(LOG_LEVELS.get(level.lower(), logging.INFO))
