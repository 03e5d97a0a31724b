#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ JSON‑Schema Improvement Validator
===============================================================================

Purpose
-------
Validate the arguments of a `submit_improvement` tool call (structured mode)
against the schema bundled at `code_reviewer/schema.json`.

Public API
----------
* `validate_improvement(payload: str | bytes | dict) -> dict`
    - Returns the parsed JSON object on success
    - Raises `jsonschema.ValidationError` on schema violations
    - Raises `json.JSONDecodeError` on malformed JSON
* `improvement_schema() -> dict`
    - The active schema (reused as the tool's `parameters`)

Design notes
------------
* The schema is loaded **once** at import time via `importlib.resources`.
* A `Draft7Validator` is compiled for speed and structured errors.
"""
from __future__ import annotations

import copy
import json
from importlib import resources
from typing import Any, Dict

from jsonschema import Draft7Validator, ValidationError

from code_reviewer import get_logger

log = get_logger(__name__)


def _load_schema() -> Dict[str, Any]:
    """
    Load the bundled schema from the installed package.

    Raises
    ------
    SystemExit
        If the schema cannot be located or decoded (broken install).
    """
    try:
        with resources.files("code_reviewer").joinpath("schema.json").open(
            encoding="utf-8"
        ) as fh:
            return json.load(fh)
    except FileNotFoundError as exc:  # pragma: no cover
        log.critical("schema.json not found inside package: %s", exc)
        raise SystemExit(1) from exc
    except json.JSONDecodeError as exc:  # pragma: no cover
        log.critical("schema.json is invalid JSON: %s", exc)
        raise SystemExit(1) from exc


_SCHEMA: Dict[str, Any] = _load_schema()
Draft7Validator.check_schema(_SCHEMA)
_VALIDATOR = Draft7Validator(_SCHEMA)


def improvement_schema() -> Dict[str, Any]:
    """Return a copy of the bundled schema without the draft/title metadata."""
    schema = copy.deepcopy(_SCHEMA)
    for key in ("$schema", "title", "description"):
        schema.pop(key, None)
    return schema


def pretty_pointer(exc: ValidationError) -> str:
    """Human‑friendly location of the failing field (JSON Pointer‑ish)."""
    return ".".join(["$", *(str(p) for p in exc.path)])


def validate_improvement(payload: str | bytes | Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate *payload* (dict/str/bytes) against the bundled schema.

    Returns
    -------
    dict
        Parsed JSON object.
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        data = json.loads(payload)
    elif isinstance(payload, dict):
        data = payload
    else:  # pragma: no cover
        raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

    _VALIDATOR.validate(data)
    log.debug("Improvement payload validated (%d chars of content).", len(data["content"]))
    return data


__all__ = ["validate_improvement", "improvement_schema", "pretty_pointer"]
