"""
Shared helpers for the application.
"""
import logging

from app.core import config


_ROOT_LOGGER = "app"
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT_LOGGER)
    if root.handlers:
        return root

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the application's logger hierarchy.

    Modules outside the ``app`` package (``server``, ``scripts.*``) are nested
    under it so they share the same handler and level.
    """
    _configure_root()
    if name != _ROOT_LOGGER and not name.startswith(_ROOT_LOGGER + "."):
        name = f"{_ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
