"""
Logging setup for the ``ttlock`` command and for applications that embed
the client.

Library modules only create ``logging.getLogger(__name__)`` loggers under
the ``ttlock_api_client`` namespace.  :func:`configure_logging` attaches
a single stderr handler to that namespace and leaves the root logger
untouched.  Records carry the thread name so that messages from the
background ``ttlock-token-renewal`` thread can be told apart from the
caller's requests.
"""

import logging
import sys

PACKAGE_LOGGER = "ttlock_api_client"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"

_HANDLER_NAME = "ttlock-stderr"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Send ``ttlock_api_client`` records at ``level`` and above to stderr.

    Calling it again only changes the level; the handler is installed once.
    Unknown level names raise ``ValueError``.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


__all__ = ["LOG_FORMAT", "PACKAGE_LOGGER", "configure_logging"]
