"""Logging configuration helpers."""

import logging

_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"

# Libraries that log every outbound request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "hpack")


def configure_logging(level: str = "INFO") -> None:
    """Configure the ``food_lookup`` logger with a single stream handler.

    Safe to call more than once: the handler is added only once, but the level
    is applied on every call.
    """
    logger = logging.getLogger("food_lookup")
    logger.setLevel(level.upper())
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
