from __future__ import annotations

"""Diagnostic logging setup (loguru).

CONTRACT
- Inputs: verbose flag, POSTDEPLOY_LOG_LEVEL env var
- Outputs:
  - A single stderr sink at the resolved level
- Invariants:
  - --verbose forces DEBUG; otherwise POSTDEPLOY_LOG_LEVEL, default WARNING
"""

import os
import sys

from loguru import logger

LOG_LEVEL_ENV = "POSTDEPLOY_LOG_LEVEL"
DEFAULT_LEVEL = "WARNING"


def resolve_level(verbose: bool = False) -> str:
    if verbose:
        return "DEBUG"
    return os.environ.get(LOG_LEVEL_ENV, DEFAULT_LEVEL).upper()


def configure_logging(verbose: bool = False) -> str:
    level = resolve_level(verbose)
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> <level>{level: <7}</level> {message}",
    )
    return level
