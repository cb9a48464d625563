"""
Logging for ktcsv, built on loguru.

Records emitted by the package are disabled on import so that a library
never writes to the application's sinks uninvited. Call
``configure_logger()`` to add a sink and switch them on.
"""

import os
import sys
from typing import Any, Optional

from loguru import logger

DEFAULT_LEVEL = os.getenv("KTCSV_LOG_LEVEL", "INFO")

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

logger.disable("ktcsv")


def configure_logger(
    *,
    level: Optional[str] = None,
    sink: Any = None,
    colorize: Optional[bool] = None,
    replace: bool = True,
    backtrace: bool = True,
    diagnose: bool = False,
) -> Any:
    """
    Add a sink for ktcsv records and enable them.

    Args:
        level: Minimum level for the sink (default: $KTCSV_LOG_LEVEL or INFO)
        sink: Anything loguru accepts as a sink (default: sys.stderr)
        colorize: Force colors on or off (default: let loguru decide)
        replace: Remove previously configured handlers first
        backtrace: Extend tracebacks beyond the catching frame
        diagnose: Show variable values in tracebacks

    Returns:
        The configured loguru logger.
    """
    if replace:
        logger.remove()

    logger.add(
        sink if sink is not None else sys.stderr,
        level=level or DEFAULT_LEVEL,
        format=LOG_FORMAT,
        colorize=colorize,
        backtrace=backtrace,
        diagnose=diagnose,
    )
    logger.enable("ktcsv")
    return logger


def get_logger(name: Optional[str] = None):
    """Return the package logger, bound to ``name`` when given."""
    if name:
        return logger.bind(name=name)
    return logger
