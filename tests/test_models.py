"""
===============================================================================
Unit‑tests ▸ models (ReviewMode parsing, SessionSummary bookkeeping)
===============================================================================
"""
from __future__ import annotations

import dataclasses

import pytest

from code_reviewer.models import ReviewMode, ReviewOutcome, SessionStatus, SessionSummary


@pytest.mark.parametrize(
    "text, mode",
    [
        ("bugfix", ReviewMode.BUG_FIX),
        ("Bug Fix Only", ReviewMode.BUG_FIX),
        ("  FULL ", ReviewMode.FULL_REVIEW),
        ("security_review", None),
        ("performance", ReviewMode.PERFORMANCE),
        ("cleanup", ReviewMode.CLEANUP),
    ],
)
def test_parse(text: str, mode) -> None:
    if mode is None:
        with pytest.raises(ValueError):
            ReviewMode.parse(text)
    else:
        assert ReviewMode.parse(text) is mode


def test_every_mode_has_instructions() -> None:
    texts = {mode.instructions for mode in ReviewMode}
    assert len(texts) == len(ReviewMode)
    assert all(t.strip() for t in texts)


def test_record_returns_new_value() -> None:
    start = SessionSummary(mode=ReviewMode.GENERAL)
    after = start.record(ReviewOutcome.APPLIED).record(ReviewOutcome.NO_CHANGE).record(ReviewOutcome.PROVIDER_ERROR)

    assert start.reviewed == 0
    assert (after.reviewed, after.modified, after.no_change, after.errors, after.skipped) == (3, 1, 1, 1, 0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        after.reviewed = 10  # type: ignore[misc]


def test_terminal_status_reports() -> None:
    base = SessionSummary(mode=ReviewMode.GENERAL).record(ReviewOutcome.SKIPPED)
    assert base.cancelled().status is SessionStatus.CANCELLED
    assert base.cancelled().report().startswith("AI review cancelled by user")

    aborted = base.aborted("API rate limit reached")
    assert aborted.status is SessionStatus.ABORTED
    assert aborted.report().startswith("AI review aborted: API rate limit reached")
    assert aborted.skipped == 1
