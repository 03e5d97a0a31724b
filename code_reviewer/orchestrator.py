#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Review Orchestrator
===============================================================================

Overview
--------
Drives one review session over an ordered list of candidate paths. Each file
runs through a small state machine, strictly one file at a time:

    Pending → Reading → Invoking → Normalizing → NoChange
                                              └→ AwaitingDecision → Applied | Skipped
                         └→ Failed → Abort session | record error and continue

  1) **Cancellation** is checked before each file is read; once set, the loop
     stops and the remaining files are never read or submitted.
  2) **Reading**: unreadable, undecodable or empty files are excluded (a
     warning for failures, silence for empty files) and are not counted.
  3) **Invoking**: one provider call per file; this is the only long‑running
     step and it is never preempted.
  4) **Normalizing**: streamed fragments are joined in arrival order, fences
     stripped, whitespace trimmed.
  5) **No‑op**: empty output, or output equal to the trimmed original, is
     recorded as NoChange without showing a diff.
  6) **Decision**: the UI shows both full texts and returns Apply or Skip
     (dismissal counts as Skip).
  7) **Apply** writes the *normalized* text, never the raw provider output.
  8) **Failure**: the classifier decides between aborting the session and
     recording the file as an error.

Every session ends with exactly one `show_summary()` call carrying status
COMPLETED, CANCELLED or ABORTED, and `close()` is always called on the UI.
Already‑applied files stay applied when a session is cancelled or aborted.
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional, Sequence

from code_reviewer import get_logger
from code_reviewer.error_classifier import ErrorClassifier, classify_exception
from code_reviewer.file_store import FileStore, FileStoreError
from code_reviewer.models import (
    CandidateFile,
    ProviderError,
    ProviderFailure,
    ProviderRequest,
    ReviewMode,
    ReviewOutcome,
    SessionSummary,
)
from code_reviewer.provider import ImprovementProvider
from code_reviewer.response_normalizer import normalize
from code_reviewer.ui import Decision, DiffRequest, ReviewUI

log = get_logger(__name__)


class CancellationToken:
    """Cooperative cancellation flag, observed only at file boundaries."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class SessionAborted(Exception):
    """Internal signal: a session‑fatal provider failure was classified."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ReviewOrchestrator:
    def __init__(
        self,
        provider: ImprovementProvider,
        ui: ReviewUI,
        file_store: FileStore,
        *,
        classifier: Optional[ErrorClassifier] = None,
    ) -> None:
        self.provider = provider
        self.ui = ui
        self.file_store = file_store
        self.classifier = classifier or ErrorClassifier()

    # ------------------------------------------------------------------ #
    # Session
    # ------------------------------------------------------------------ #
    def run(
        self,
        candidates: Sequence[Path],
        mode: ReviewMode,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SessionSummary:
        """
        Review *candidates* in order with the given *mode*.

        Returns
        -------
        SessionSummary
            Final counters and terminal status of the session.
        """
        summary = SessionSummary(mode=mode)
        total = len(candidates)
        log.info("Review session started | mode=%s | files=%d", mode.label, total)
        try:
            for index, path in enumerate(candidates, 1):
                if cancel_token is not None and cancel_token.cancelled:
                    self.ui.warning("AI review cancelled by user")
                    summary = summary.cancelled()
                    break

                candidate = self._read(Path(path))
                if candidate is None:
                    continue

                self.ui.progress(index, total, candidate.path)
                try:
                    outcome = self._review(candidate, mode)
                except SessionAborted as exc:
                    summary = summary.record(ReviewOutcome.PROVIDER_ERROR).aborted(exc.reason)
                    self.ui.error(f"Error occurred: {exc.reason}")
                    break
                summary = summary.record(outcome)
            self.ui.show_summary(summary)
        finally:
            self.ui.close()

        log.info(
            "Review session finished | status=%s | reviewed=%d modified=%d skipped=%d no_change=%d errors=%d",
            summary.status.value,
            summary.reviewed,
            summary.modified,
            summary.skipped,
            summary.no_change,
            summary.errors,
        )
        return summary

    # ------------------------------------------------------------------ #
    # Per‑file steps
    # ------------------------------------------------------------------ #
    def _read(self, path: Path) -> Optional[CandidateFile]:
        try:
            data = self.file_store.read(path)
        except FileStoreError as exc:
            self.ui.warning(str(exc))
            return None
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            self.ui.warning(f"Not a UTF-8 text file, skipped: {path}")
            return None
        if not text.strip():
            log.debug("Empty file excluded: %s", path)
            return None
        return CandidateFile(path=path, original=text)

    def _review(self, candidate: CandidateFile, mode: ReviewMode) -> ReviewOutcome:
        request = ProviderRequest.build(candidate, mode)
        failure: Optional[ProviderFailure] = None
        modified = ""
        try:
            result = self.provider.improve(request)
            if result.ok:
                modified = normalize(result.output if result.output is not None else "")
            else:
                failure = result.error
        except ProviderError as exc:
            failure = exc.failure
        except Exception as exc:
            log.exception("Provider raised unexpectedly for %s", candidate.path)
            failure = classify_exception(exc)
        if failure is not None:
            return self._handle_failure(candidate, failure)

        if not modified or modified == candidate.original.strip():
            self.ui.info(f"No changes for {candidate.path}")
            return ReviewOutcome.NO_CHANGE

        choice = self.ui.confirm(
            DiffRequest(original=candidate.original, modified=modified, label=str(candidate.path))
        )
        if choice is not Decision.APPLY:
            self.ui.info(f"Skipped {candidate.path}")
            return ReviewOutcome.SKIPPED

        try:
            self.file_store.write(candidate.path, modified.encode("utf-8"))
        except FileStoreError as exc:
            self.ui.warning(str(exc))
            return ReviewOutcome.SKIPPED
        self.ui.info(f"Applied changes to {candidate.path}")
        return ReviewOutcome.APPLIED

    def _handle_failure(self, candidate: CandidateFile, failure: ProviderFailure) -> ReviewOutcome:
        verdict = self.classifier.classify(failure)
        if verdict.aborts_session:
            log.error(
                "Session‑fatal provider failure on %s | category=%s | status=%s | %s",
                candidate.path,
                verdict.category.value,
                failure.status_code,
                failure.message,
            )
            raise SessionAborted(verdict.label)

        log.warning(
            "Provider failure on %s | category=%s | status=%s | message=%s | raw=%r",
            candidate.path,
            verdict.category.value,
            failure.status_code,
            failure.message,
            failure.raw,
        )
        self.ui.warning(f"{verdict.label}, skipping {candidate.path}")
        return ReviewOutcome.PROVIDER_ERROR


__all__ = ["CancellationToken", "ReviewOrchestrator", "SessionAborted"]
