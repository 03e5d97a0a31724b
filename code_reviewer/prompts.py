#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Prompt Builders
===============================================================================

Purpose
-------
Reusable prompt text for the per‑file improvement request:
  • Reviewer system primer (shared by every mode)
  • Mode‑specific instruction profiles (full review, bug fix, performance, …)
  • Per‑file user prompt carrying the path (context only) and full content

Design choices
--------------
• The output contract is a **complete file**: no diffs, no prose. Any code
  fences the model adds anyway are removed by the response normalizer.
• The file path is context for the model, never an instruction to act on.
"""
from __future__ import annotations

import textwrap
from typing import Dict

from code_reviewer import get_logger

log = get_logger(__name__)


SYSTEM_PRIMER = textwrap.dedent(
    """\
    You are a code reviewer and bug fixer.
    You are given the complete contents of ONE file in any programming language.
    Resolve bugs, errors, possible exceptions, and syntax or logical errors.
    Analyze the code properly before changing it and keep its public behaviour intact.
    Add short comments describing the changes you made.
    Return ONLY the full improved file. No explanations, no diffs.
    If the file needs no change, return it unchanged.
    """
)

MODE_INSTRUCTIONS: Dict[str, str] = {
    "general": (
        "Fix bugs and errors, remove obvious performance problems, and close "
        "security holes such as injection or unsafe input handling."
    ),
    "full": (
        "Perform a full review: correctness, error handling, performance, "
        "security, readability, and naming. Apply every improvement you would "
        "request in a code review."
    ),
    "bugfix": (
        "Only fix bugs: incorrect logic, unhandled exceptions, off‑by‑one errors, "
        "and syntax errors. Do not restyle or refactor working code."
    ),
    "performance": (
        "Focus on performance: avoid redundant work, needless allocations, and "
        "quadratic loops. Preserve behaviour exactly."
    ),
    "security": (
        "Focus on security: validate inputs, avoid injection, unsafe "
        "deserialization, hard‑coded secrets, and insecure defaults."
    ),
    "cleanup": (
        "Clean up and refactor: remove dead code, simplify control flow, and "
        "improve naming and structure without changing behaviour."
    ),
}


def mode_instructions(mode_value: str) -> str:
    """Return the instruction profile for a ReviewMode value (falls back to general)."""
    return MODE_INSTRUCTIONS.get(mode_value, MODE_INSTRUCTIONS["general"])


def build_system_prompt(instructions: str) -> str:
    """Shared primer followed by the session's mode instructions."""
    return f"{SYSTEM_PRIMER}\nReview focus:\n{instructions.strip()}\n"


def build_user_prompt(*, path: str, content: str) -> str:
    """
    Compose the user message for one file. The path grounds the language and
    conventions; it is not a command.
    """
    prompt = (
        "Review and improve this file.\n"
        "Return ONLY the full improved code.\n"
        f"FILE PATH: {path}\n"
        "CODE:\n"
        f"{content}"
    )
    log.debug("User prompt built for %s (%d chars).", path, len(prompt))
    return prompt


__all__ = [
    "SYSTEM_PRIMER",
    "MODE_INSTRUCTIONS",
    "mode_instructions",
    "build_system_prompt",
    "build_user_prompt",
]
