"""Logging configuration for sparse_dae.

By default only warnings and errors are shown. Step-by-step information of
the integrators is logged at DEBUG level.

Usage:
    from sparse_dae.logging import logger, enable_debug_logging

    enable_debug_logging()
    res = solve_dae(...)  # prints accepted/rejected steps
"""

import logging
import sys

logger = logging.getLogger("sparse_dae")

# Default: WARNING level only (quiet operation)
logger.setLevel(logging.WARNING)

if not logger.handlers:
    _default_handler = logging.StreamHandler(sys.stdout)
    _default_handler.setLevel(logging.WARNING)
    _default_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(_default_handler)


def set_log_level(level):
    """Set the logging level.

    Args:
        level: logging.DEBUG, logging.INFO, logging.WARNING, etc.
    """
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def enable_debug_logging():
    """Log every step decision of the integrators."""
    set_log_level(logging.DEBUG)
