#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Response Normalizer
===============================================================================

Turns a provider's raw output into the text shown in the diff and written on
apply:

  • accumulate()        – join streamed fragments in arrival order
  • strip_code_fences() – drop a leading ```lang / trailing ``` wrapper, trim
  • normalize()         – both of the above

`normalize(normalize(t)) == normalize(t)` for every text: fence stripping is
repeated until the text no longer changes. No syntax validation happens here.
"""
from __future__ import annotations

import re
from typing import List

from code_reviewer.models import RawOutput

_LEADING_FENCE = re.compile(r"^```[\w+#.-]*[ \t]*(?:\r?\n)?")
_TRAILING_FENCE = re.compile(r"```$")


def accumulate(raw: RawOutput) -> str:
    if isinstance(raw, str):
        return raw
    buffer: List[str] = []
    for fragment in raw:
        if fragment:
            buffer.append(fragment)
    return "".join(buffer)


def _strip_once(text: str) -> str:
    text = _LEADING_FENCE.sub("", text.strip(), count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def strip_code_fences(text: str) -> str:
    current = text
    while True:
        cleaned = _strip_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def normalize(raw: RawOutput) -> str:
    return strip_code_fences(accumulate(raw))


__all__ = ["accumulate", "strip_code_fences", "normalize"]
