"""Logging utilities for Graft.

Graft is mostly used as a library, so the package logger carries a
no-op handler and stays silent until the host application configures
logging. Modules only need ``logging.getLogger(__name__)``.
"""

import logging
import os
import sys
from typing import Optional

getLogger = logging.getLogger

_GRAFT_LOGGER = getLogger('graft')
_GRAFT_LOGGER.addHandler(logging.NullHandler())

DEFAULT_FORMAT = '%(levelname)s %(name)s: %(message)s'

_cli_handler: Optional[logging.Handler] = None


def _should_trace() -> bool:
    """Check whether GRAFT_TRACE asks for debug output."""
    value = os.environ.get('GRAFT_TRACE', '')
    return bool(value) and value.lower() not in ('0', 'false', 'no')


def default_logging_config(verbose: bool = False) -> None:
    """
    Send Graft log records to stderr.

    Calling this again replaces the handler installed by the previous call.

    Args:
        verbose: Log at DEBUG instead of WARNING
    """
    global _cli_handler

    if _cli_handler is not None:
        _GRAFT_LOGGER.removeHandler(_cli_handler)

    _cli_handler = logging.StreamHandler(sys.stderr)
    _cli_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    _GRAFT_LOGGER.addHandler(_cli_handler)
    _GRAFT_LOGGER.setLevel(logging.DEBUG if verbose or _should_trace() else logging.WARNING)
