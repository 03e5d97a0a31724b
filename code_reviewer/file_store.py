#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ File Store
===============================================================================

Byte‑level read/write primitives used by the orchestrator. Failures are raised
as `FileStoreError` with a coarse `reason` so callers can word a warning
without inspecting errno themselves:

    not_found · permission_denied · is_a_directory · no_space · other
"""
from __future__ import annotations

import errno
from pathlib import Path
from typing import Protocol

from code_reviewer import get_logger

log = get_logger(__name__)

_REASONS = {
    errno.ENOENT: "not_found",
    errno.EACCES: "permission_denied",
    errno.EPERM: "permission_denied",
    errno.EISDIR: "is_a_directory",
    errno.ENOSPC: "no_space",
}

_MESSAGES = {
    "not_found": "File not found: {path}",
    "permission_denied": "Permission denied: {path}",
    "is_a_directory": "Path is a directory, skipped: {path}",
    "no_space": "No disk space left to write file: {path}",
    "other": "Failed to access file: {path}",
}


class FileStoreError(Exception):
    def __init__(self, path: Path, reason: str, detail: str = "") -> None:
        self.path = path
        self.reason = reason
        self.detail = detail
        super().__init__(_MESSAGES.get(reason, _MESSAGES["other"]).format(path=path))

    @classmethod
    def from_os_error(cls, path: Path, exc: OSError) -> "FileStoreError":
        return cls(path, _REASONS.get(exc.errno or -1, "other"), str(exc))


class FileStore(Protocol):
    def read(self, path: Path) -> bytes: ...

    def write(self, path: Path, data: bytes) -> None: ...


class LocalFileStore:
    """FileStore backed by the local filesystem."""

    def read(self, path: Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise FileStoreError.from_os_error(Path(path), exc) from exc

    def write(self, path: Path, data: bytes) -> None:
        try:
            Path(path).write_bytes(data)
        except OSError as exc:
            raise FileStoreError.from_os_error(Path(path), exc) from exc
        log.debug("Wrote %d bytes to %s", len(data), path)


__all__ = ["FileStore", "FileStoreError", "LocalFileStore"]
