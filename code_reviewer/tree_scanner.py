#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Tree Scanner
===============================================================================

Purpose
-------
Enumerate the candidate files under a user‑selected root:

  • A root that is a **file** is returned as the single candidate, whatever its
    extension (explicit selection bypasses the filter).
  • A root that is a **directory** is walked depth‑first. Directories named in
    `IGNORED_DIRS` are pruned at any depth; files are kept only when their
    extension is in `ALLOWED_EXTENSIONS` (case‑sensitive).

Sibling order follows `os.listdir`, so it is deterministic within a run but
not sorted. Symlinked directories are never entered (like
`os.walk(followlinks=False)`); symlinked files are kept when their target is a
regular file. Entries that vanish between listing and stat, broken symlinks
and unreadable subdirectories are skipped. If the root itself cannot be
listed the result is empty and carries a human‑readable reason; `scan` never raises.

This module never reads file contents; the orchestrator reads lazily.
"""
from __future__ import annotations

import errno
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List, Optional

from code_reviewer import get_logger

log = get_logger(__name__)

# --------------------------------------------------------------------------- #
# Fixed allow/deny lists
# --------------------------------------------------------------------------- #
ALLOWED_EXTENSIONS: FrozenSet[str] = frozenset({
    ".html", ".css", ".scss", ".sass",
    ".js", ".jsx", ".ts", ".tsx",
    ".py",
    ".c", ".cpp", ".h", ".hpp",
    ".java",
    ".cs",
    ".go",
    ".rs",
    ".php",
    ".rb",
    ".json", ".yaml", ".yml",
    ".xml",
    ".sql",
    ".sh",
    ".env",
})

IGNORED_DIRS: FrozenSet[str] = frozenset({
    "node_modules", "dist", "build", "out",
    ".next", ".nuxt", ".vercel", ".turbo", ".cache",
    ".git", ".github", ".vscode",
    "coverage", "vendor", "target", "bin", "obj",
})


@dataclass
class ScanResult:
    """
    Ordered candidate list plus the reason the root could not be listed (if any).
    """
    paths: List[Path] = field(default_factory=list)
    error: Optional[str] = None

    def __len__(self) -> int:
        return len(self.paths)


def is_candidate_name(name: str) -> bool:
    # Bare dotfiles such as ".env" have no suffix and are never candidates.
    return Path(name).suffix in ALLOWED_EXTENSIONS


def _describe_list_error(root: Path, exc: OSError) -> str:
    if exc.errno == errno.ENOENT:
        return f"Directory not found: {root}"
    if exc.errno in (errno.EACCES, errno.EPERM):
        return f"Permission denied: {root}"
    return f"Failed to read directory: {root}"


def _walk(directory: Path, names: List[str], out: List[Path]) -> None:
    for name in names:
        if name in IGNORED_DIRS:
            continue
        full = directory / name
        try:
            st = os.lstat(full)
            if stat.S_ISLNK(st.st_mode):
                st = os.stat(full)
                if stat.S_ISDIR(st.st_mode):
                    log.debug("Not following symlinked directory %s", full)
                    continue
        except OSError:
            continue  # deleted / broken symlink

        if stat.S_ISDIR(st.st_mode):
            try:
                children = os.listdir(full)
            except OSError as exc:
                log.debug("Skipping unreadable directory %s: %s", full, exc)
                continue
            _walk(full, children, out)
        elif stat.S_ISREG(st.st_mode) and is_candidate_name(name):
            out.append(full)


def scan(root: Path | str) -> ScanResult:
    """
    Return the ordered candidate files below *root* (absolute paths).

    Parameters
    ----------
    root : Path | str
        A single file or a directory.

    Returns
    -------
    ScanResult
        `paths` in depth‑first order; `error` set only when *root* itself
        could not be listed.
    """
    root = Path(root).expanduser().absolute()

    if root.is_file():
        log.info("Single file selected: %s", root)
        return ScanResult(paths=[root])

    try:
        names = os.listdir(root)
    except OSError as exc:
        reason = _describe_list_error(root, exc)
        log.warning(reason)
        return ScanResult(error=reason)

    found: List[Path] = []
    _walk(root, names, found)
    log.info("Files found: %d (root=%s)", len(found), root)
    return ScanResult(paths=found)


__all__ = ["ALLOWED_EXTENSIONS", "IGNORED_DIRS", "ScanResult", "scan", "is_candidate_name"]
