#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Script Shim
===============================================================================

Run the reviewer straight from a checkout:

    python review.py review ./src --mode security

All functionality lives in `code_reviewer.cli:main`.
"""
from __future__ import annotations

import sys

from code_reviewer.cli import main as _cli_main


def main() -> int:
    """Delegate to the packaged CLI entry point."""
    return _cli_main()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
