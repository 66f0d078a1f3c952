"""Logging setup."""

import logging

from gamebridge.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings.

    Args:
        settings: Application settings providing ``log_level``
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("gamebridge").setLevel(level)

    # web3 request logging is too chatty at DEBUG for a polling subscriber
    logging.getLogger("web3").setLevel(max(level, logging.INFO))
