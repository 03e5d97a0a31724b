#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Review UI
===============================================================================

The orchestrator only knows the narrow `ReviewUI` capability:

    progress(index, total, path)   – per‑file progress notification
    confirm(diff) -> Decision      – show original vs. modified, ask Apply/Skip
    info / warning / error         – user‑visible messages
    show_summary(summary)          – final report (exactly once per session)
    close()                        – release session‑scoped diff resources

`ConsoleReviewUI` is the terminal implementation. It prints a full‑context
unified diff (every line of both texts) and, when a `diff_tool` command is
configured (e.g. "code --diff --wait"), also opens both texts side by side in
that tool from a session temp directory that `close()` removes.
"""
from __future__ import annotations

import difflib
import getpass
import shlex
import shutil
import subprocess
import sys
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol, TextIO

from code_reviewer import get_logger
from code_reviewer.models import ReviewMode, SessionStatus, SessionSummary

log = get_logger(__name__)


class Decision(Enum):
    APPLY = "apply"
    SKIP = "skip"


@dataclass(frozen=True)
class DiffRequest:
    original: str
    modified: str
    label: str


class ReviewUI(Protocol):
    def progress(self, index: int, total: int, path: Path) -> None: ...

    def confirm(self, diff: DiffRequest) -> Optional[Decision]: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def show_summary(self, summary: SessionSummary) -> None: ...

    def close(self) -> None: ...


def full_diff(diff: DiffRequest) -> str:
    """
    Unified diff with unlimited context so both texts appear in full.
    """
    a = diff.original.splitlines(keepends=True)
    b = diff.modified.splitlines(keepends=True)
    lines = difflib.unified_diff(
        a,
        b,
        fromfile=f"{diff.label} (original)",
        tofile=f"{diff.label} (AI)",
        n=max(len(a), len(b)),
    )
    return "".join(line if line.endswith("\n") else line + "\n" for line in lines)


class ConsoleReviewUI:
    """Terminal ReviewUI; also serves as the CredentialPrompt for the CLI."""

    def __init__(
        self,
        *,
        diff_tool: Optional[str] = None,
        stream: TextIO | None = None,
        input_fn: Callable[[str], str] = input,
        secret_fn: Callable[[str], str] = getpass.getpass,
    ) -> None:
        self.diff_tool = diff_tool
        self.out = stream or sys.stdout
        self._input = input_fn
        self._secret = secret_fn
        self._tmpdir: Optional[Path] = None

    # --- messages --------------------------------------------------------- #
    def progress(self, index: int, total: int, path: Path) -> None:
        pct = int(index * 100 / total) if total else 100
        log.info("[%3d%%] Reviewing (%d/%d): %s", pct, index, total, path)

    def info(self, message: str) -> None:
        log.info(message)

    def warning(self, message: str) -> None:
        log.warning(message)

    def error(self, message: str) -> None:
        log.error(message)

    def show_summary(self, summary: SessionSummary) -> None:
        level = log.error if summary.status is SessionStatus.ABORTED else log.info
        level("Session finished with status=%s", summary.status.value)
        print(summary.report(), file=self.out)

    # --- prompts ---------------------------------------------------------- #
    def _ask(self, prompt: str) -> Optional[str]:
        try:
            return self._input(prompt)
        except EOFError:
            return None

    def choose_mode(self) -> Optional[ReviewMode]:
        modes = list(ReviewMode)
        for i, mode in enumerate(modes, 1):
            print(f"  {i}) {mode.label}", file=self.out)
        answer = self._ask("Select review mode [1]: ")
        if answer is None:
            return None
        answer = answer.strip()
        if not answer:
            return modes[0]
        if answer.isdigit() and 1 <= int(answer) <= len(modes):
            return modes[int(answer) - 1]
        try:
            return ReviewMode.parse(answer)
        except ValueError:
            log.warning("Unknown mode %r; using %s.", answer, modes[0].label)
            return modes[0]

    def ask_reuse_secret(self, slot: str) -> Optional[bool]:
        answer = self._ask(f"A stored API key was found ({slot}). Reuse it? [Y/n]: ")
        if answer is None:
            return None
        return answer.strip().lower() not in {"n", "no"}

    def prompt_secret(self, slot: str) -> Optional[str]:
        try:
            return self._secret(f"Enter the provider API key ({slot}): ")
        except EOFError:
            return None

    # --- diff + decision -------------------------------------------------- #
    def confirm(self, diff: DiffRequest) -> Optional[Decision]:
        print(full_diff(diff), file=self.out)
        if self.diff_tool:
            self._open_diff_tool(diff)
        answer = self._ask(f"Apply AI changes to {diff.label}? [a]pply/[s]kip: ")
        if answer is None:
            return None
        if answer.strip().lower() in {"a", "apply", "y", "yes"}:
            return Decision.APPLY
        return Decision.SKIP

    def _open_diff_tool(self, diff: DiffRequest) -> None:
        if self._tmpdir is None:
            self._tmpdir = Path(tempfile.mkdtemp(prefix="code-reviewer-diff-"))
        name = Path(diff.label).name or "file"
        original = self._tmpdir / f"{name}.original"
        modified = self._tmpdir / f"{name}.ai"
        original.write_text(diff.original, encoding="utf-8")
        modified.write_text(diff.modified, encoding="utf-8")
        cmd = [*shlex.split(self.diff_tool or ""), str(original), str(modified)]
        try:
            subprocess.run(cmd, check=False)
        except OSError as exc:
            log.warning("Could not launch diff tool %r: %s", self.diff_tool, exc)

    def close(self) -> None:
        if self._tmpdir is not None:
            shutil.rmtree(self._tmpdir, ignore_errors=True)
            self._tmpdir = None


__all__ = ["Decision", "DiffRequest", "ReviewUI", "ConsoleReviewUI", "full_diff"]
