#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Improvement Provider (OpenAI‑compatible Chat Completions)
===============================================================================

Purpose
-------
For one file (path + text) ask the model for the **complete improved file**
and return a `ProviderResult`:

  • Ok(str)            – batched reply (stream disabled)
  • Ok(Iterator[str])  – streamed reply; fragments in arrival order
  • Err(ProviderFailure) – request rejected (status mapped to a kind)

Three request styles
--------------------
* streamed   – `stream=True`; `delta.content` fragments are yielded lazily.
               SDK errors raised while iterating become `ProviderError`.
* batched    – single `choices[0].message.content`.
* structured – forced `submit_improvement` tool call; arguments are validated
               against the bundled JSON schema (`response_validator`).

Any OpenAI‑compatible endpoint works through `base_url`, including providers
that expose an OpenAI compatibility layer.

Testing
-------
Pass `client=` to inject a fake with `.chat.completions.create(**kwargs)`;
no network access or API key is needed then.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Optional, Protocol

from jsonschema import ValidationError

from code_reviewer import get_logger
from code_reviewer.config import DEFAULT_API_TIMEOUT, DEFAULT_MODEL, MAX_PROMPT_BYTES
from code_reviewer.error_classifier import classify_exception
from code_reviewer.models import (
    ProviderError,
    ProviderErrorKind,
    ProviderFailure,
    ProviderRequest,
    ProviderResult,
)
from code_reviewer.prompts import build_system_prompt, build_user_prompt
from code_reviewer.response_validator import improvement_schema, pretty_pointer, validate_improvement

log = get_logger(__name__)

TOOL_NAME = "submit_improvement"


class ImprovementProvider(Protocol):
    def improve(self, request: ProviderRequest) -> ProviderResult: ...


def _submit_improvement_tool() -> Dict[str, Any]:
    """
    OpenAI tool/function schema for `submit_improvement` (parameters come from
    the bundled schema.json so both sides share one contract).
    """
    return {
        "type": "function",
        "function": {
            "name": TOOL_NAME,
            "description": (
                "Return the COMPLETE improved file for the file under review. "
                "Never return a diff. Return the original text if no change is needed."
            ),
            "parameters": improvement_schema(),
        },
    }


def _failure_from_exception(exc: Exception) -> ProviderFailure:
    """
    Map SDK exceptions onto the closed failure set. Connection problems and
    timeouts mean the provider is unreachable, which is treated as a
    server‑side outage.
    """
    from openai import APIConnectionError

    if isinstance(exc, APIConnectionError):
        return ProviderFailure(
            kind=ProviderErrorKind.SERVER_ERROR,
            message=f"Provider unreachable: {exc}",
        )
    return classify_exception(exc)


class OpenAIProvider:
    """
    ImprovementProvider backed by the `openai` SDK (`openai>=1.0`).

    The API key is handed to the SDK client at construction and not kept on
    this object.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        timeout: int = DEFAULT_API_TIMEOUT,
        stream: bool = True,
        structured: bool = False,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self.stream = stream and not structured
        self.structured = structured
        self._client = client if client is not None else self._create_client(api_key, base_url, timeout)
        log.info(
            "Provider initialised | model=%s | timeout=%ss | base=%s | mode=%s",
            model,
            timeout,
            base_url or "<default>",
            "structured" if structured else ("stream" if self.stream else "batch"),
        )

    @staticmethod
    def _create_client(api_key: Optional[str], base_url: Optional[str], timeout: int) -> Any:
        if not api_key:
            raise RuntimeError("An API key is required to create the provider client.")
        from openai import OpenAI

        return OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    # ------------------------------------------------------------------ #
    def _messages(self, request: ProviderRequest) -> list[dict]:
        user = build_user_prompt(path=request.path, content=request.content)
        size = len(user.encode("utf-8"))
        if size > MAX_PROMPT_BYTES:
            log.warning(
                "Large prompt for %s (%d bytes > %d); the provider may reject it.",
                request.path,
                size,
                MAX_PROMPT_BYTES,
            )
        return [
            {"role": "system", "content": build_system_prompt(request.instructions)},
            {"role": "user", "content": user},
        ]

    def improve(self, request: ProviderRequest) -> ProviderResult:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": self._messages(request),
            "temperature": 0,
        }
        if self.structured:
            kwargs["tools"] = [_submit_improvement_tool()]
            kwargs["tool_choice"] = {"type": "function", "function": {"name": TOOL_NAME}}
        elif self.stream:
            kwargs["stream"] = True

        log.debug("Provider request | model=%s | path=%s | size=%d", self.model, request.path, len(request.content))
        try:
            resp = self._client.chat.completions.create(**kwargs)
        except Exception as exc:
            failure = _failure_from_exception(exc)
            log.debug("Provider request failed for %s: %s", request.path, failure.message)
            return ProviderResult.failure(failure)

        if self.structured:
            return self._structured_result(resp, request.path)
        if self.stream:
            return ProviderResult.success(self._iter_fragments(resp, request.path))
        try:
            content = resp.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as exc:
            return ProviderResult.failure(
                ProviderFailure(ProviderErrorKind.UNKNOWN, f"Malformed API response: {exc}", raw=resp)
            )
        return ProviderResult.success(content)

    # ------------------------------------------------------------------ #
    def _iter_fragments(self, stream: Any, path: str) -> Iterator[str]:
        count = 0
        try:
            for chunk in stream:
                choices = getattr(chunk, "choices", None) or []
                if not choices:
                    continue
                delta = getattr(choices[0], "delta", None)
                text = getattr(delta, "content", None)
                if text:
                    count += 1
                    yield text
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(_failure_from_exception(exc)) from exc
        log.debug("Stream for %s finished after %d fragments.", path, count)

    def _structured_result(self, resp: Any, path: str) -> ProviderResult:
        try:
            msg = resp.choices[0].message
            calls = getattr(msg, "tool_calls", None) or []
        except (AttributeError, IndexError, TypeError) as exc:
            return ProviderResult.failure(
                ProviderFailure(ProviderErrorKind.UNKNOWN, f"Malformed API response: {exc}", raw=resp)
            )
        if not calls:
            return ProviderResult.failure(
                ProviderFailure(
                    ProviderErrorKind.UNKNOWN,
                    f"Assistant did not call the required tool '{TOOL_NAME}'.",
                    raw=getattr(msg, "content", None),
                )
            )

        fn = getattr(calls[0], "function", None)
        raw_args = getattr(fn, "arguments", "") or ""
        try:
            args = validate_improvement(raw_args)
        except json.JSONDecodeError as exc:
            return ProviderResult.failure(
                ProviderFailure(ProviderErrorKind.UNKNOWN, f"Tool arguments are not JSON: {exc}", raw=raw_args)
            )
        except ValidationError as exc:
            return ProviderResult.failure(
                ProviderFailure(
                    ProviderErrorKind.UNKNOWN,
                    f"Tool arguments invalid at {pretty_pointer(exc)}: {exc.message}",
                    raw=raw_args,
                )
            )
        if args.get("notes"):
            log.info("Provider notes for %s: %s", path, args["notes"])
        return ProviderResult.success(args["content"])


__all__ = ["ImprovementProvider", "OpenAIProvider", "TOOL_NAME"]
