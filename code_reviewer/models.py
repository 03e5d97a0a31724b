#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Data model
===============================================================================

Types shared across the review pipeline:

* ReviewMode        – instruction profile chosen once per session
* CandidateFile     – a path plus its original text (read lazily)
* ReviewOutcome     – terminal state of one file's state machine
* SessionSummary    – immutable aggregate counters; `record()` returns a new value
* ProviderRequest   – what is sent to the improvement provider
* ProviderResult    – closed Ok/Err variant returned by the provider
* ProviderError     – raised by streamed outputs that fail mid‑stream
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from code_reviewer.prompts import mode_instructions

# A provider returns either a complete body or fragments in arrival order.
RawOutput = Union[str, Iterable[str]]


# =============================================================================
# Review mode
# =============================================================================
class ReviewMode(Enum):
    GENERAL = "general"
    FULL_REVIEW = "full"
    BUG_FIX = "bugfix"
    PERFORMANCE = "performance"
    SECURITY = "security"
    CLEANUP = "cleanup"

    @property
    def label(self) -> str:
        return _MODE_LABELS[self]

    @property
    def instructions(self) -> str:
        return mode_instructions(self.value)

    @classmethod
    def parse(cls, text: str) -> "ReviewMode":
        """Accept a mode value ("bugfix") or label ("Bug Fix Only"), case‑insensitively."""
        needle = text.strip().lower()
        for mode in cls:
            if needle in {mode.value, mode.label.lower(), mode.name.lower()}:
                return mode
        raise ValueError(f"Unknown review mode: {text!r}")


_MODE_LABELS = {
    ReviewMode.GENERAL: "General",
    ReviewMode.FULL_REVIEW: "Full Review",
    ReviewMode.BUG_FIX: "Bug Fix Only",
    ReviewMode.PERFORMANCE: "Performance Optimization",
    ReviewMode.SECURITY: "Security Review",
    ReviewMode.CLEANUP: "Code Cleanup/Refactor",
}


# =============================================================================
# Per‑file types
# =============================================================================
@dataclass(frozen=True)
class CandidateFile:
    path: Path
    original: str


class ReviewOutcome(Enum):
    NO_CHANGE = "no_change"
    APPLIED = "applied"
    SKIPPED = "skipped"
    PROVIDER_ERROR = "provider_error"


class SessionStatus(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ABORTED = "aborted"


@dataclass(frozen=True)
class SessionSummary:
    """
    Aggregate counters for one session.

    Invariant: reviewed == modified + skipped + errors + no_change.
    """

    mode: ReviewMode
    reviewed: int = 0
    modified: int = 0
    skipped: int = 0
    errors: int = 0
    no_change: int = 0
    status: SessionStatus = SessionStatus.COMPLETED
    abort_reason: Optional[str] = None

    def record(self, outcome: ReviewOutcome) -> "SessionSummary":
        """Return the summary that results from one more file reaching *outcome*."""
        bumped = {
            ReviewOutcome.APPLIED: "modified",
            ReviewOutcome.SKIPPED: "skipped",
            ReviewOutcome.PROVIDER_ERROR: "errors",
            ReviewOutcome.NO_CHANGE: "no_change",
        }[outcome]
        return replace(
            self,
            reviewed=self.reviewed + 1,
            **{bumped: getattr(self, bumped) + 1},
        )

    def cancelled(self) -> "SessionSummary":
        return replace(self, status=SessionStatus.CANCELLED)

    def aborted(self, reason: str) -> "SessionSummary":
        return replace(self, status=SessionStatus.ABORTED, abort_reason=reason)

    def report(self) -> str:
        """Human‑readable final report."""
        head = {
            SessionStatus.COMPLETED: "AI review complete",
            SessionStatus.CANCELLED: "AI review cancelled by user",
            SessionStatus.ABORTED: f"AI review aborted: {self.abort_reason}",
        }[self.status]
        return (
            f"{head}\n"
            f"  Mode      : {self.mode.label}\n"
            f"  Reviewed  : {self.reviewed}\n"
            f"  Modified  : {self.modified}\n"
            f"  Skipped   : {self.skipped}\n"
            f"  No change : {self.no_change}\n"
            f"  Errors    : {self.errors}"
        )


# =============================================================================
# Provider boundary
# =============================================================================
class ProviderErrorKind(Enum):
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ProviderFailure:
    kind: ProviderErrorKind
    message: str
    status_code: Optional[int] = None
    raw: Any = None


class ProviderError(Exception):
    """Raised from a streamed output when the provider fails mid‑stream."""

    def __init__(self, failure: ProviderFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure


@dataclass(frozen=True)
class ProviderRequest:
    instructions: str
    path: str
    content: str

    @classmethod
    def build(cls, candidate: CandidateFile, mode: ReviewMode) -> "ProviderRequest":
        return cls(
            instructions=mode.instructions,
            path=str(candidate.path),
            content=candidate.original,
        )


@dataclass(frozen=True)
class ProviderResult:
    """Either `output` (Ok) or `error` (Err); never both."""

    output: Optional[RawOutput] = field(default=None, repr=False)
    error: Optional[ProviderFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, output: RawOutput) -> "ProviderResult":
        return cls(output=output)

    @classmethod
    def failure(cls, error: ProviderFailure) -> "ProviderResult":
        return cls(error=error)


__all__ = [
    "RawOutput",
    "ReviewMode",
    "CandidateFile",
    "ReviewOutcome",
    "SessionStatus",
    "SessionSummary",
    "ProviderErrorKind",
    "ProviderFailure",
    "ProviderError",
    "ProviderRequest",
    "ProviderResult",
]
