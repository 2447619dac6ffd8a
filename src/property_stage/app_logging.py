"""Logging configuration helpers."""

import logging

_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the ``property_stage`` logger with one stream handler.

    Safe to call repeatedly; later calls only adjust the level.
    """
    logger = logging.getLogger("property_stage")
    logger.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
