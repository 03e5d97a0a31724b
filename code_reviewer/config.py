#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Configuration (environment‑backed defaults)
===============================================================================

`ReviewerConfig.from_env()` reads the tunables below when it is called; the CLI
then overrides them with explicit flags. `DEFAULT_MODEL`, `DEFAULT_API_TIMEOUT`
and `MAX_PROMPT_BYTES` are read once at import as provider defaults.

Environment
-----------
CODE_REVIEWER_MODEL             – model id (default "gpt-4o-mini")
CODE_REVIEWER_API_TIMEOUT       – per‑request timeout in seconds (default 120)
CODE_REVIEWER_BASE_URL          – OpenAI‑compatible endpoint (aliases: OPENAI_BASE_URL, OPENAI_API_BASE)
CODE_REVIEWER_STREAM            – truthy → stream responses (default on)
CODE_REVIEWER_STRUCTURED        – truthy → force the `submit_improvement` tool call (default off)
CODE_REVIEWER_ABORT_ON_UNKNOWN  – truthy → unclassified provider errors abort the session
CODE_REVIEWER_SECRETS_FILE      – secret store path (default ~/.config/code-reviewer/secrets.json)
CODE_REVIEWER_DIFF_TOOL         – external two‑pane diff command, e.g. "code --diff --wait"
CODE_REVIEWER_MAX_PROMPT_BYTES  – size above which a warning is logged before sending (default 200000)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

from code_reviewer.logger import is_truthy

_BASE_URL_VARS: Sequence[str] = (
    "CODE_REVIEWER_BASE_URL",
    "OPENAI_BASE_URL",
    "OPENAI_API_BASE",
)


def _first_env(names: Iterable[str]) -> str | None:
    for name in names:
        val = os.getenv(name)
        if val:
            return val
    return None


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return is_truthy(raw)


def resolve_base_url() -> str | None:
    """Return the configured OpenAI‑compatible base URL (optional)."""
    return _first_env(_BASE_URL_VARS)


_SECRETS_FILE = "~/.config/code-reviewer/secrets.json"

DEFAULT_MODEL = os.getenv("CODE_REVIEWER_MODEL", "gpt-4o-mini")
DEFAULT_API_TIMEOUT = int(os.getenv("CODE_REVIEWER_API_TIMEOUT", "120"))
MAX_PROMPT_BYTES = int(os.getenv("CODE_REVIEWER_MAX_PROMPT_BYTES", str(200_000)))

# One named secret slot per provider integration.
CREDENTIAL_SLOT = "provider-api-key"


@dataclass
class ReviewerConfig:
    """Resolved settings for one review session."""

    model: str = DEFAULT_MODEL
    api_timeout: int = DEFAULT_API_TIMEOUT
    base_url: Optional[str] = None
    stream: bool = True
    structured: bool = False
    abort_on_unknown: bool = False
    secrets_file: Path = Path(_SECRETS_FILE).expanduser()
    diff_tool: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ReviewerConfig":
        """Read the CODE_REVIEWER_* variables as they are set right now."""
        return cls(
            model=os.getenv("CODE_REVIEWER_MODEL", "gpt-4o-mini"),
            api_timeout=int(os.getenv("CODE_REVIEWER_API_TIMEOUT", "120")),
            base_url=resolve_base_url(),
            stream=_env_flag("CODE_REVIEWER_STREAM", True),
            structured=_env_flag("CODE_REVIEWER_STRUCTURED", False),
            abort_on_unknown=_env_flag("CODE_REVIEWER_ABORT_ON_UNKNOWN", False),
            secrets_file=Path(os.getenv("CODE_REVIEWER_SECRETS_FILE", _SECRETS_FILE)).expanduser(),
            diff_tool=os.getenv("CODE_REVIEWER_DIFF_TOOL") or None,
        )


__all__ = [
    "CREDENTIAL_SLOT",
    "DEFAULT_MODEL",
    "DEFAULT_API_TIMEOUT",
    "MAX_PROMPT_BYTES",
    "ReviewerConfig",
    "resolve_base_url",
]
