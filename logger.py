#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Logging Shim (compatibility module)
===============================================================================

Lets repository‑root scripts use

    from logger import get_logger

while the real implementation lives in `code_reviewer/logger.py`. Loggers
returned here are the same objects the package hands out.
"""
from __future__ import annotations

from code_reviewer.logger import get_logger

__all__ = ["get_logger"]