#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Code‑Reviewer ▸ Credential Manager
===============================================================================

Obtains the provider secret once per session, before any file is reviewed.

State machine
-------------
    no stored secret  → prompt for new → store → use
    stored secret     → ask "reuse?" ─┬─ yes → use stored (no prompt)
                                      └─ no  → prompt for new → store → use

Dismissing any required prompt raises `UserCancelled`; the caller must not
start a session. Entered secrets are stripped before storage and use.

Secret values never reach the logger; only the slot name is logged.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Optional, Protocol

from code_reviewer import get_logger
from code_reviewer.config import CREDENTIAL_SLOT

log = get_logger(__name__)


class UserCancelled(Exception):
    """The user dismissed a credential prompt."""


class SecretStore(Protocol):
    def get(self, slot: str) -> Optional[str]: ...

    def store(self, slot: str, secret: str) -> None: ...


class CredentialPrompt(Protocol):
    def ask_reuse_secret(self, slot: str) -> Optional[bool]:
        """True → reuse, False → replace, None → dismissed."""
        ...

    def prompt_secret(self, slot: str) -> Optional[str]:
        """Return the entered secret, or None when dismissed."""
        ...


class JsonFileSecretStore:
    """
    Secret slots persisted as a JSON object in a user‑private file (mode 0600).

    A missing or unreadable file is treated as empty.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            log.warning("Ignoring unreadable secret store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            log.warning("Ignoring malformed secret store %s (not an object).", self.path)
            return {}
        return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def get(self, slot: str) -> Optional[str]:
        return self._load().get(slot) or None

    def store(self, slot: str, secret: str) -> None:
        data = self._load()
        data[slot] = secret
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        os.chmod(self.path, 0o600)
        log.info("Stored secret in slot '%s' (%s).", slot, self.path)


class CredentialManager:
    def __init__(
        self,
        store: SecretStore,
        prompt: CredentialPrompt,
        *,
        slot: str = CREDENTIAL_SLOT,
    ) -> None:
        self.store = store
        self.prompt = prompt
        self.slot = slot

    def obtain(self) -> str:
        """
        Return the provider secret, prompting as needed.

        Raises
        ------
        UserCancelled
            If the user dismisses a required prompt or enters an empty secret.
        """
        stored = self.store.get(self.slot)
        if stored:
            reuse = self.prompt.ask_reuse_secret(self.slot)
            if reuse is None:
                raise UserCancelled(f"Credential selection for '{self.slot}' dismissed.")
            if reuse:
                log.info("Reusing stored secret from slot '%s'.", self.slot)
                return stored.strip()
        return self._prompt_and_store()

    def _prompt_and_store(self) -> str:
        entered = self.prompt.prompt_secret(self.slot)
        secret = (entered or "").strip()
        if not secret:
            raise UserCancelled(f"No secret entered for '{self.slot}'.")
        self.store.store(self.slot, secret)
        return secret


__all__ = [
    "UserCancelled",
    "SecretStore",
    "CredentialPrompt",
    "JsonFileSecretStore",
    "CredentialManager",
]
