"""Logging utilities for meshwork.

Provides a consistent logger hierarchy and formatting without modifying the
process root logger. All meshwork code should obtain loggers via get_logger().
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Union

ROOT_LOGGER = 'meshwork'
_FORMAT = logging.Formatter('%(levelname)s %(name)s: %(message)s')


def _ensure_package_root() -> logging.Logger:
    """Ensure the 'meshwork' logger has a single stream handler and is isolated
    from the process root logger. Returns the 'meshwork' logger.
    """
    root = logging.getLogger(ROOT_LOGGER)
    # The package __init__ installs a NullHandler; swap it for a real stream
    if not any(not isinstance(h, logging.NullHandler) for h in root.handlers):
        for h in list(root.handlers):
            root.removeHandler(h)
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


def _qualify(name: str) -> str:
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + '.'):
        return name
    return f'{ROOT_LOGGER}.{name}'


def configure_logging(level: Union[str, int] = 'INFO', mute_external: bool = True) -> None:
    """Configure the 'meshwork' logger family level.

    With ``mute_external`` the scipy/numpy loggers are kept at WARNING while
    meshwork itself runs at DEBUG. This does NOT modify the process root logger.
    """
    root = _ensure_package_root()
    lvl = _to_level(level)
    root.setLevel(lvl)
    if mute_external and lvl <= logging.DEBUG:
        for noisy in ('scipy', 'numpy'):
            logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str, level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Return a logger under the 'meshwork' namespace.

    Bare names are prefixed (``get_logger('mesh')`` is ``meshwork.mesh``).
    Without an explicit level the logger is NOTSET and inherits from the
    package logger configured via configure_logging().
    """
    log = logging.getLogger(_qualify(name))
    log.setLevel(_to_level(level) if level is not None else logging.NOTSET)
    return log


__all__ = ['get_logger', 'configure_logging', 'ROOT_LOGGER']
