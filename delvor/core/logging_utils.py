"""Logging utilities for delvor.

Keeps every delvor logger under the ``delvor`` namespace and formats them
consistently without touching the process root logger. Library code obtains
loggers through get_logger().
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Union

_FORMAT = logging.Formatter('%(levelname)s %(name)s: %(message)s')
_ROOT = 'delvor'


def _ensure_root() -> logging.Logger:
    """Give the 'delvor' logger one stdout handler and detach it from the root logger."""
    root = logging.getLogger(_ROOT)
    # NullHandler from the package __init__ is swapped for a real stream handler
    for h in list(root.handlers):
        if isinstance(h, logging.NullHandler):
            root.removeHandler(h)
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(_FORMAT)
        root.addHandler(handler)
    root.propagate = False
    return root


def _to_level(level: Union[str, int, None], default: int = logging.INFO) -> int:
    if level is None:
        return default
    if isinstance(level, int):
        return level
    value = getattr(logging, str(level).upper(), None)
    return value if isinstance(value, int) else default


def configure_logging(level: Union[str, int] = 'INFO', mute_external: bool = True) -> logging.Logger:
    """Set the level of the 'delvor' logger family and attach its stream handler.

    The process root logger is left alone. With ``mute_external`` the
    matplotlib loggers are kept at INFO when delvor runs at DEBUG.
    """
    root = _ensure_root()
    lvl = _to_level(level)
    root.setLevel(lvl)
    if mute_external and lvl <= logging.DEBUG:
        for noisy in ('matplotlib', 'matplotlib.font_manager'):
            logging.getLogger(noisy).setLevel(logging.INFO)
    return root


def get_logger(name: str, level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Return a logger under the 'delvor' namespace.

    Without ``level`` the logger stays at NOTSET and inherits whatever
    configure_logging() set on the 'delvor' parent.
    """
    if name != _ROOT and not name.startswith(_ROOT + '.'):
        name = f'{_ROOT}.{name}'
    log = logging.getLogger(name)
    log.setLevel(_to_level(level) if level is not None else logging.NOTSET)
    return log


__all__ = ['get_logger', 'configure_logging']
