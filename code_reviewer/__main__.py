#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Module Entry Point  (python -m code_reviewer)
===============================================================================

Canonical invocation:
    python -m code_reviewer [<cli args>]

* Handles a fast `--version` path.
* Logs a concise startup banner (version, Python, platform).
* Delegates everything else to `code_reviewer.cli:main`, so `python -m
  code_reviewer` and the `code-reviewer` console script behave identically.
"""
from __future__ import annotations

import argparse
import platform
import sys

from code_reviewer import get_logger, get_version


def _parse_cli(argv: list[str]) -> tuple[argparse.Namespace, list[str]]:
    """
    Extract global flags (currently just --version) and leave the rest
    for the real CLI driver to parse.
    """
    parser = argparse.ArgumentParser(prog="python -m code_reviewer", add_help=False)
    parser.add_argument("--version", action="store_true")
    return parser.parse_known_args(argv)


def _print_banner() -> None:
    get_logger(__name__).debug(
        "Code‑Reviewer %s  |  Python %s  |  %s",
        get_version(),
        platform.python_version(),
        platform.platform(),
    )


def main() -> int:
    args, remaining = _parse_cli(sys.argv[1:])
    if args.version:
        print(get_version())
        return 0

    _print_banner()

    from code_reviewer.cli import main as cli_main  # lazy: keeps --version light

    return cli_main(remaining)


if __name__ == "__main__":
    sys.exit(main())
