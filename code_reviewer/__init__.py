#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer – Package Initialisation
===============================================================================

Exports
-------
* __version__     – Resolved from installed package metadata
* get_version()   – Helper returning the version string
* get_logger()    – Re‑export of the packaged logger.get_logger

Side‑effects
------------
* Configures the root "code_reviewer" logger on first import so all sub‑modules
  share the same rotating file + console handlers (see code_reviewer/logger.py).
"""
from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version as _pkg_version

from code_reviewer.logger import get_logger as _configure_logger

# -----------------------------------------------------------------------------
# Logging – initialise root logger once
# -----------------------------------------------------------------------------
_ROOT_LOGGER = _configure_logger(None)  # configure "code_reviewer" root
_ROOT_LOGGER.debug("Logger initialised in %s", __name__)

# -----------------------------------------------------------------------------
# Version helpers
# -----------------------------------------------------------------------------
try:
    __version__: str = _pkg_version("code-reviewer")
except PackageNotFoundError:
    # Source checkouts without an install lack distribution metadata.
    # Keep this fallback in sync with pyproject.toml
    __version__ = "0.2.0"
    _ROOT_LOGGER.debug(
        "Package metadata not found – using fallback version %s", __version__
    )


def get_version() -> str:
    """Return the package version string."""
    return __version__


# -----------------------------------------------------------------------------
# Logger accessor (public re‑export)
# -----------------------------------------------------------------------------
def get_logger(name: str | None = None) -> logging.Logger:
    """
    Return a logger configured with Code‑Reviewer's handlers & formatting.

    Parameters
    ----------
    name : str | None
        • Explicit module logger name (e.g., __name__) or None for the root
          project logger "code_reviewer".
    """
    return _configure_logger(name)


__all__ = ["__version__", "get_version", "get_logger"]
