#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Command Line Interface
===============================================================================

Subcommands
-----------
• review      – scan PATH, then review each file interactively (Apply/Skip)
• scan        – print the candidate files PATH would yield
• modes       – list the available review modes
• version     – print package version

Global flags
------------
• --version   – print package version (equivalent to the `version` subcommand)

Examples
--------
  # Review a folder with the bug‑fix profile, streaming responses
  code-reviewer review ./src --mode bugfix

  # Review one file (extension filter is bypassed for explicit files)
  code-reviewer review notes/README.md

  # Use an OpenAI‑compatible endpoint and a two‑pane diff tool
  CODE_REVIEWER_BASE_URL=https://example.invalid/v1 \
      code-reviewer review . --diff-tool "code --diff --wait"

Ctrl‑C during a review requests cancellation: the file in flight finishes and
the session stops before the next file. A second Ctrl‑C aborts immediately.

Exit codes
----------
0 – completed or cancelled · 1 – error / credential prompt dismissed ·
2 – session aborted by a provider failure · 130 – interrupted
"""
from __future__ import annotations

import argparse
import signal
import sys
from typing import Optional

from code_reviewer import get_logger, get_version
from code_reviewer.config import ReviewerConfig
from code_reviewer.credentials import CredentialManager, JsonFileSecretStore, UserCancelled
from code_reviewer.error_classifier import ErrorClassifier
from code_reviewer.file_store import LocalFileStore
from code_reviewer.models import ReviewMode, SessionStatus
from code_reviewer.orchestrator import CancellationToken, ReviewOrchestrator
from code_reviewer.provider import OpenAIProvider
from code_reviewer.tree_scanner import scan
from code_reviewer.ui import ConsoleReviewUI

log = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _config_from_args(args: argparse.Namespace) -> ReviewerConfig:
    cfg = ReviewerConfig.from_env()
    if args.model:
        cfg.model = args.model
    if args.api_timeout is not None:
        cfg.api_timeout = args.api_timeout
    if args.no_stream:
        cfg.stream = False
    if args.structured:
        cfg.structured = True
    if args.abort_on_unknown:
        cfg.abort_on_unknown = True
    if args.diff_tool:
        cfg.diff_tool = args.diff_tool
    return cfg


def _resolve_mode(args: argparse.Namespace, ui: ConsoleReviewUI) -> Optional[ReviewMode]:
    if args.mode:
        return ReviewMode.parse(args.mode)
    if sys.stdin.isatty():
        return ui.choose_mode()
    return ReviewMode.GENERAL


def _install_cancel_handler(token: CancellationToken):
    """
    First SIGINT requests cooperative cancellation; the default handler is
    restored so a second SIGINT interrupts immediately.
    """
    previous = signal.getsignal(signal.SIGINT)

    def _handler(signum, frame):  # noqa: ARG001
        log.warning("Cancellation requested; finishing the current file…")
        token.cancel()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, _handler)
    return previous


# ─────────────────────────────────────────────────────────────────────────────
# Subcommand handlers
# ─────────────────────────────────────────────────────────────────────────────

def cmd_review(args: argparse.Namespace) -> int:
    cfg = _config_from_args(args)
    ui = ConsoleReviewUI(diff_tool=cfg.diff_tool)

    result = scan(args.path)
    if result.error:
        ui.warning(result.error)
    ui.info(f"Files found: {len(result.paths)}")

    mode = _resolve_mode(args, ui)
    if mode is None:
        ui.info("No review mode selected; nothing to do.")
        return 1

    try:
        secret = CredentialManager(JsonFileSecretStore(cfg.secrets_file), ui).obtain()
    except UserCancelled as exc:
        ui.info(f"Review not started: {exc}")
        return 1

    provider = OpenAIProvider(
        api_key=secret,
        model=cfg.model,
        base_url=cfg.base_url,
        timeout=cfg.api_timeout,
        stream=cfg.stream,
        structured=cfg.structured,
    )
    del secret

    orchestrator = ReviewOrchestrator(
        provider,
        ui,
        LocalFileStore(),
        classifier=ErrorClassifier(abort_on_unknown=cfg.abort_on_unknown),
    )
    token = CancellationToken()
    previous = _install_cancel_handler(token)
    try:
        summary = orchestrator.run(result.paths, mode, token)
    finally:
        signal.signal(signal.SIGINT, previous)
    return 2 if summary.status is SessionStatus.ABORTED else 0


def cmd_scan(args: argparse.Namespace) -> int:
    result = scan(args.path)
    if result.error:
        log.error(result.error)
        return 1
    for path in result.paths:
        print(path)
    log.info("Files found: %d", len(result.paths))
    return 0


def cmd_modes(_args: argparse.Namespace) -> int:
    for mode in ReviewMode:
        print(f"{mode.value:<12} {mode.label}")
    return 0


def cmd_version(_args: argparse.Namespace) -> int:
    print(get_version())
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# Argument parser
# ─────────────────────────────────────────────────────────────────────────────

def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="code-reviewer",
        description="Code‑Reviewer – AI‑assisted, per‑file interactive code review",
    )
    p.add_argument("--version", action="store_true", help="Print package version and exit.")

    sub = p.add_subparsers(dest="cmd", metavar="command")

    pr = sub.add_parser("review", help="Review a file or folder interactively")
    pr.add_argument("path", help="File or directory to review.")
    pr.add_argument(
        "--mode",
        choices=[m.value for m in ReviewMode],
        help="Review mode (prompted on a TTY when omitted; default: general).",
    )
    pr.add_argument("--model", help="Model id (default: $CODE_REVIEWER_MODEL).")
    pr.add_argument("--api-timeout", type=int, default=None, help="HTTP timeout (seconds).")
    pr.add_argument("--no-stream", action="store_true", help="Request a single batched reply.")
    pr.add_argument("--structured", action="store_true", help="Force the submit_improvement tool call.")
    pr.add_argument(
        "--abort-on-unknown",
        action="store_true",
        help="Abort the session on unclassified provider errors instead of skipping the file.",
    )
    pr.add_argument("--diff-tool", help='External two‑pane diff command, e.g. "code --diff --wait".')
    pr.set_defaults(func=cmd_review)

    ps = sub.add_parser("scan", help="Print the candidate files for PATH")
    ps.add_argument("path", help="File or directory to scan.")
    ps.set_defaults(func=cmd_scan)

    pm = sub.add_parser("modes", help="List review modes")
    pm.set_defaults(func=cmd_modes)

    pv = sub.add_parser("version", help="Print package version")
    pv.set_defaults(func=cmd_version)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    try:
        parser = _parser()
        args = parser.parse_args(argv)

        if getattr(args, "version", False):
            print(get_version())
            return 0

        if not hasattr(args, "func"):
            parser.print_help()
            return 2

        return int(args.func(args))
    except KeyboardInterrupt:
        log.info("Interrupted by user (Ctrl‑C).")
        return 130
    except SystemExit as exc:
        return int(exc.code) if isinstance(exc.code, int) else 1
    except Exception as exc:
        log.exception("Fatal error in CLI: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
