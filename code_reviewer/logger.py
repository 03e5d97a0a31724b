#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Unified Logging Facility (packaged)
===============================================================================

Every module obtains its logger with

    from code_reviewer import get_logger
    log = get_logger(__name__)

Handlers live only on the project root logger "code_reviewer" and are attached
the first time any logger is requested; child loggers carry no handlers and
propagate. The repository root `logger.py` re‑exports `get_logger`.

Handlers
--------
* console – INFO by default, human or JSON lines
* file    – DEBUG, `code_reviewer.log` rotated daily, 7 backups

If the log directory is not writable a temp directory is used, and if that
fails too logging continues on the console only.

Environment (read once, when the root logger is configured)
-----------------------------------------------------------
    CODE_REVIEWER_LOG_DIR   – log directory (default: ./logs)
    CODE_REVIEWER_LOG_LVL   – console level, name or number (default: INFO)
    CODE_REVIEWER_LOG_ROT   – rotation schedule ("midnight", "H", "M", …)
    CODE_REVIEWER_LOG_BACK  – number of rotated files kept (default 7)
    CODE_REVIEWER_LOG_UTC   – truthy → UTC timestamps and rotation
    CODE_REVIEWER_LOG_JSON  – truthy → JSON lines on the console

Provider secrets are never passed to these loggers; callers log slot names only.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

_ROOT_LOGGER_NAME = "code_reviewer"
_LOG_FILE = "code_reviewer.log"

FORMAT = "%(asctime)s | %(name)s | %(process)d | %(levelname)-8s | %(message)s"
DTFMT = "%Y-%m-%d %H:%M:%S"


def is_truthy(val: str | None) -> bool:
    """Return True if *val* represents a truthy setting."""
    if val is None:
        return False
    return val.strip().lower() in {"1", "true", "yes", "on", "y", "t"}


def _parse_level(val: str | None, default: int = logging.INFO) -> int:
    """Accept a level name ("INFO") or number ("20"); *default* otherwise."""
    s = (val or "").strip()
    if not s:
        return default
    if s.isdigit():
        return int(s)
    level = logging.getLevelName(s.upper())
    return level if isinstance(level, int) else default


@dataclass(frozen=True)
class _LogSettings:
    log_dir: Path
    console_level: int
    rotate_when: str
    backups: int
    utc: bool
    json_console: bool

    @classmethod
    def from_env(cls) -> "_LogSettings":
        backups = os.getenv("CODE_REVIEWER_LOG_BACK", "7").strip()
        return cls(
            log_dir=Path(os.getenv("CODE_REVIEWER_LOG_DIR", "logs")),
            console_level=_parse_level(os.getenv("CODE_REVIEWER_LOG_LVL")),
            rotate_when=os.getenv("CODE_REVIEWER_LOG_ROT", "midnight"),
            backups=int(backups) if backups.isdigit() else 7,
            utc=is_truthy(os.getenv("CODE_REVIEWER_LOG_UTC")),
            json_console=is_truthy(os.getenv("CODE_REVIEWER_LOG_JSON")),
        )


class _JsonFormatter(logging.Formatter):
    """One JSON object per record (CI / log scraping)."""

    def __init__(self, utc: bool) -> None:
        super().__init__()
        self.utc = utc

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        if self.utc:
            ts = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created))
        else:
            ts = time.strftime("%Y-%m-%dT%H:%M:%S%z", time.localtime(record.created))
        data = {
            "ts": ts,
            "name": record.name,
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def _human_formatter(utc: bool) -> logging.Formatter:
    fmt = logging.Formatter(fmt=FORMAT, datefmt=DTFMT)
    if utc:
        fmt.converter = time.gmtime  # type: ignore[assignment]
    return fmt


def _writable_dir(preferred: Path) -> Optional[Path]:
    """*preferred*, else $TMPDIR/code-reviewer-logs, else None (console only)."""
    for candidate in (preferred.expanduser(), Path(tempfile.gettempdir()) / "code-reviewer-logs"):
        try:
            candidate.mkdir(parents=True, exist_ok=True)
            probe = candidate / ".writable"
            probe.write_text("ok", encoding="utf-8")
            probe.unlink()
        except OSError:
            continue
        return candidate.resolve()
    return None


def _file_handler(settings: _LogSettings, log_dir: Path) -> Optional[logging.Handler]:
    try:
        fh = TimedRotatingFileHandler(
            filename=log_dir / _LOG_FILE,
            when=settings.rotate_when,
            backupCount=settings.backups,
            encoding="utf-8",
            utc=settings.utc,
        )
    except (OSError, ValueError):
        return None
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(_human_formatter(settings.utc))
    return fh


def _console_handler(settings: _LogSettings) -> logging.Handler:
    ch = logging.StreamHandler()
    ch.setLevel(settings.console_level)
    ch.setFormatter(_JsonFormatter(settings.utc) if settings.json_console else _human_formatter(settings.utc))
    return ch


def _configure_root(root: logging.Logger) -> None:
    settings = _LogSettings.from_env()
    root.setLevel(logging.DEBUG)
    root.propagate = False

    log_dir = _writable_dir(settings.log_dir)
    fh = _file_handler(settings, log_dir) if log_dir is not None else None
    if fh is not None:
        root.addHandler(fh)
    root.addHandler(_console_handler(settings))

    root.debug(
        "Logger initialised | file=%s | console=%s | rotate=%s x%d | utc=%s | json=%s",
        log_dir / _LOG_FILE if fh is not None else "<none>",
        logging.getLevelName(settings.console_level),
        settings.rotate_when,
        settings.backups,
        settings.utc,
        settings.json_console,
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Return a logger; configure the project root logger on first use.

    *None* (or "code_reviewer") returns the root project logger itself. Any
    other name returns a handler‑less child that propagates to it.
    """
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    if not root.handlers:
        _configure_root(root)

    if name is None or name == _ROOT_LOGGER_NAME:
        return root

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = True
    return logger


__all__ = ["get_logger", "is_truthy"]
