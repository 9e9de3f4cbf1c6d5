import logging

from .config import LOG_LEVEL

_ROOT = "assetfind"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(LOG_LEVEL.upper())
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace, e.g. get_logger("data.loader")."""
    _configure_root()
    return logging.getLogger(f"{_ROOT}.{name}")
