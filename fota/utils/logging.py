"""Root logger setup for the ``fota`` command line."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"
LEVEL_ENV = "FOTA_LOG_LEVEL"
DEBUG_ENV = "FOTA_DEBUG"


def resolve_level(verbose: bool = False, environ: Optional[Mapping[str, str]] = None) -> int:
    """Pick the diagnostic level for one run.

    ``FOTA_LOG_LEVEL`` (name or number) wins; otherwise ``-v`` or a truthy
    ``FOTA_DEBUG`` selects DEBUG, and INFO is the default. An unknown level
    name falls through to the flag-based choice.
    """
    env = os.environ if environ is None else environ
    explicit = (env.get(LEVEL_ENV) or "").strip()
    if explicit.isdigit():
        return int(explicit)
    named = logging.getLevelName(explicit.upper()) if explicit else None
    if isinstance(named, int):
        return named
    debug = (env.get(DEBUG_ENV) or "").strip().lower() in {"1", "true", "yes", "on"}
    return logging.DEBUG if verbose or debug else logging.INFO


def configure_root(verbose: bool = False, environ: Optional[Mapping[str, str]] = None) -> int:
    """Install the compact console format once and set the root level."""
    level = resolve_level(verbose, environ)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.setLevel(level)
    return level
