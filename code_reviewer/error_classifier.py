#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Provider Error Classifier
===============================================================================

Maps a provider failure onto a fixed taxonomy and a session policy:

    Kind               Category          Policy
    ─────────────────  ────────────────  ─────────────────────────────
    429                RateLimited       ABORT (whole session)
    401                Unauthorized      ABORT
    403                Forbidden         ABORT
    413                PayloadTooLarge   SKIP_FILE
    ≥ 500              ServerError       ABORT
    anything else      Unknown           LOG_AND_CONTINUE  (ABORT if abort_on_unknown)

Session‑fatal categories stop the loop before more requests are spent;
file‑local ones are recorded as errors and the batch continues.

`classify_exception()` converts arbitrary client exceptions (anything exposing
`status_code` or `status`) into a `ProviderFailure` so the classifier only ever
works on the closed `ProviderErrorKind` set.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from code_reviewer import get_logger
from code_reviewer.models import ProviderErrorKind, ProviderFailure

log = get_logger(__name__)


class Policy(Enum):
    ABORT = "abort"
    SKIP_FILE = "skip_file"
    LOG_AND_CONTINUE = "log_and_continue"


class Category(Enum):
    RATE_LIMITED = "RateLimited"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    PAYLOAD_TOO_LARGE = "PayloadTooLarge"
    SERVER_ERROR = "ServerError"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Classification:
    category: Category
    policy: Policy
    label: str

    @property
    def aborts_session(self) -> bool:
        return self.policy is Policy.ABORT


_TAXONOMY = {
    ProviderErrorKind.RATE_LIMITED: (Category.RATE_LIMITED, Policy.ABORT, "API rate limit reached"),
    ProviderErrorKind.UNAUTHORIZED: (Category.UNAUTHORIZED, Policy.ABORT, "Invalid API key provided"),
    ProviderErrorKind.FORBIDDEN: (
        Category.FORBIDDEN,
        Policy.ABORT,
        "Provider access forbidden. Check API enablement or billing",
    ),
    ProviderErrorKind.PAYLOAD_TOO_LARGE: (
        Category.PAYLOAD_TOO_LARGE,
        Policy.SKIP_FILE,
        "File too large for the provider",
    ),
    ProviderErrorKind.SERVER_ERROR: (
        Category.SERVER_ERROR,
        Policy.ABORT,
        "Server problem on the provider side",
    ),
    ProviderErrorKind.UNKNOWN: (Category.UNKNOWN, Policy.LOG_AND_CONTINUE, "Unexpected provider error"),
}


def kind_from_status(status: Optional[int]) -> ProviderErrorKind:
    """Map an HTTP status code to a ProviderErrorKind."""
    if status is None:
        return ProviderErrorKind.UNKNOWN
    if status == 429:
        return ProviderErrorKind.RATE_LIMITED
    if status == 401:
        return ProviderErrorKind.UNAUTHORIZED
    if status == 403:
        return ProviderErrorKind.FORBIDDEN
    if status == 413:
        return ProviderErrorKind.PAYLOAD_TOO_LARGE
    if status >= 500:
        return ProviderErrorKind.SERVER_ERROR
    return ProviderErrorKind.UNKNOWN


def _status_of(exc: BaseException) -> Optional[int]:
    for attr in ("status_code", "status"):
        val = getattr(exc, attr, None)
        if isinstance(val, int):
            return val
        if isinstance(val, str) and val.isdigit():
            return int(val)
    return None


def classify_exception(exc: BaseException) -> ProviderFailure:
    """
    Build a ProviderFailure from an arbitrary exception raised by a client SDK.
    """
    status = _status_of(exc)
    raw: Any = getattr(exc, "body", None)
    if raw is None:
        response = getattr(exc, "response", None)
        raw = getattr(response, "text", None) if response is not None else None
    return ProviderFailure(
        kind=kind_from_status(status),
        message=str(exc) or type(exc).__name__,
        status_code=status,
        raw=raw,
    )


class ErrorClassifier:
    """
    Stateless mapping from ProviderFailure to Classification.

    `abort_on_unknown` turns unclassified failures into session aborts; the
    default keeps them file‑local.
    """

    def __init__(self, *, abort_on_unknown: bool = False) -> None:
        self.abort_on_unknown = abort_on_unknown

    def classify(self, failure: ProviderFailure) -> Classification:
        category, policy, label = _TAXONOMY[failure.kind]
        if category is Category.UNKNOWN and self.abort_on_unknown:
            policy = Policy.ABORT
        log.debug(
            "Classified provider failure | kind=%s | status=%s | policy=%s",
            failure.kind.value,
            failure.status_code,
            policy.value,
        )
        return Classification(category=category, policy=policy, label=label)


__all__ = [
    "Policy",
    "Category",
    "Classification",
    "ErrorClassifier",
    "kind_from_status",
    "classify_exception",
]
