"""
Logging setup for seqhmm.

All package loggers live under the ``seqhmm`` namespace. Console output is
attached once to the namespace root; applications that configure logging
themselves can call ``set_log_level`` or remove the handler.
"""

import logging
import sys

from seqhmm.config import get_config

ROOT_LOGGER_NAME = 'seqhmm'


def _setup_root_logger() -> logging.Logger:
    """Configure the namespace root logger from the logging config section."""
    level = (get_config('logging', 'level') or 'INFO').upper()
    fmt = get_config('logging', 'format')

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, level))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    root.propagate = False
    return root


_setup_root_logger()


def get_logger(name: str = 'main') -> logging.Logger:
    """Get a logger for the given module or component."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def set_log_level(level: str) -> None:
    """Set the level of the package root logger and its handlers."""
    log_level = getattr(logging, level.upper())
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(log_level)
    for handler in root.handlers:
        handler.setLevel(log_level)
