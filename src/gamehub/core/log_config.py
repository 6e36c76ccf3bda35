"""Logging setup for the `gamehub` logger tree."""

import logging

from gamehub.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HANDLER_NAME = "gamehub-stream"


def configure_logging(settings: Settings) -> logging.Logger:
    """Attach a single stream handler to the package logger. Calling it again only updates the level."""
    root = logging.getLogger("gamehub")
    root.setLevel(settings.log_level)
    if not any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    return root
