"""
===============================================================================
Unit‑tests ▸ ReviewOrchestrator session state machine
===============================================================================

All collaborators are in‑memory fakes: no network, no terminal, no disk.

Properties exercised
--------------------
* no‑op detection (no diff, no write)
* write fidelity (normalized text is written, not the raw stream)
* conservation (modified + skipped + errors + no_change == attempted)
* abort propagation (rate limit on file 1 stops a 5‑file batch)
* cancellation boundary (files after the cancel point are never read)
* read failures / empty files are excluded and not counted
* exactly one summary per session, UI always closed
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from code_reviewer.error_classifier import ErrorClassifier
from code_reviewer.file_store import FileStoreError
from code_reviewer.models import (
    ProviderError,
    ProviderErrorKind,
    ProviderFailure,
    ProviderRequest,
    ProviderResult,
    ReviewMode,
    SessionStatus,
    SessionSummary,
)
from code_reviewer.orchestrator import CancellationToken, ReviewOrchestrator
from code_reviewer.ui import Decision, DiffRequest


# ───────────────────────────── helper fakes ──────────────────────────────────
class MemoryFileStore:
    def __init__(self, files: Dict[str, bytes]) -> None:
        self.files = dict(files)
        self.reads: List[Path] = []
        self.writes: List[tuple] = []
        self.fail_writes = False

    def read(self, path: Path) -> bytes:
        self.reads.append(Path(path))
        key = str(path)
        if key not in self.files:
            raise FileStoreError(Path(path), "not_found")
        return self.files[key]

    def write(self, path: Path, data: bytes) -> None:
        if self.fail_writes:
            raise FileStoreError(Path(path), "no_space")
        self.writes.append((Path(path), data))
        self.files[str(path)] = data


class ScriptedProvider:
    """Returns responses from a callable of the request; records every call."""

    def __init__(self, respond: Callable[[ProviderRequest], ProviderResult]) -> None:
        self.respond = respond
        self.requests: List[ProviderRequest] = []

    def improve(self, request: ProviderRequest) -> ProviderResult:
        self.requests.append(request)
        return self.respond(request)


class RecordingUI:
    def __init__(self, decision: Optional[Decision] = Decision.APPLY) -> None:
        self.decision = decision
        self.diffs: List[DiffRequest] = []
        self.messages: List[tuple] = []
        self.summaries: List[SessionSummary] = []
        self.closed = 0
        self.on_progress: Optional[Callable[[int], None]] = None

    def progress(self, index: int, total: int, path: Path) -> None:
        self.messages.append(("progress", index, str(path)))
        if self.on_progress:
            self.on_progress(index)

    def confirm(self, diff: DiffRequest) -> Optional[Decision]:
        self.diffs.append(diff)
        return self.decision

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def show_summary(self, summary: SessionSummary) -> None:
        self.summaries.append(summary)

    def close(self) -> None:
        self.closed += 1


def _files(n: int, body: str = "x = 1\n") -> Dict[str, bytes]:
    return {f"/repo/f{i}.py": body.encode() for i in range(1, n + 1)}


def _paths(files: Dict[str, bytes]) -> List[Path]:
    return [Path(p) for p in files]


def _improved(request: ProviderRequest) -> ProviderResult:
    return ProviderResult.success(["```python\n", request.content.strip(), "  # fixed\n", "```"])


def _conserved(summary: SessionSummary) -> bool:
    return summary.reviewed == summary.modified + summary.skipped + summary.errors + summary.no_change


# ───────────────────────────── tests ─────────────────────────────────────────
def test_apply_writes_normalized_text() -> None:
    store = MemoryFileStore({"/repo/a.py": b"x = 1\n"})
    ui = RecordingUI(Decision.APPLY)
    provider = ScriptedProvider(_improved)

    summary = ReviewOrchestrator(provider, ui, store).run([Path("/repo/a.py")], ReviewMode.BUG_FIX)

    assert store.writes == [(Path("/repo/a.py"), b"x = 1  # fixed")]
    assert ui.diffs[0].original == "x = 1\n"
    assert ui.diffs[0].modified == "x = 1  # fixed"
    assert summary.modified == 1 and summary.reviewed == 1
    assert summary.status is SessionStatus.COMPLETED
    assert provider.requests[0].instructions == ReviewMode.BUG_FIX.instructions
    assert provider.requests[0].path == "/repo/a.py"


@pytest.mark.parametrize("reply", ["x = 1", "  x = 1\n\n", "```py\nx = 1\n```", ""])
def test_no_change_shows_no_diff_and_writes_nothing(reply: str) -> None:
    store = MemoryFileStore({"/repo/a.py": b"x = 1\n"})
    ui = RecordingUI()
    provider = ScriptedProvider(lambda _r: ProviderResult.success(reply))

    summary = ReviewOrchestrator(provider, ui, store).run([Path("/repo/a.py")], ReviewMode.GENERAL)

    assert summary.no_change == 1 and summary.reviewed == 1
    assert ui.diffs == []
    assert store.writes == []


@pytest.mark.parametrize("decision", [Decision.SKIP, None])
def test_skip_or_dismissal_leaves_file_untouched(decision) -> None:
    store = MemoryFileStore({"/repo/a.py": b"x = 1\n"})
    ui = RecordingUI(decision)
    summary = ReviewOrchestrator(ScriptedProvider(_improved), ui, store).run(
        [Path("/repo/a.py")], ReviewMode.GENERAL
    )
    assert summary.skipped == 1
    assert store.writes == []
    assert store.files["/repo/a.py"] == b"x = 1\n"


def test_rate_limit_aborts_after_first_file() -> None:
    files = _files(5)
    store = MemoryFileStore(files)
    ui = RecordingUI()
    failure = ProviderFailure(ProviderErrorKind.RATE_LIMITED, "429 Too Many Requests", status_code=429)
    provider = ScriptedProvider(lambda _r: ProviderResult.failure(failure))

    summary = ReviewOrchestrator(provider, ui, store).run(_paths(files), ReviewMode.GENERAL)

    assert len(provider.requests) == 1
    assert summary.reviewed == 1
    assert summary.errors == 1
    assert summary.modified == 0
    assert summary.status is SessionStatus.ABORTED
    assert summary.abort_reason == "API rate limit reached"
    assert store.reads == [Path("/repo/f1.py")]
    assert any(kind == "error" for kind, *_ in ui.messages)


def test_midstream_server_error_aborts() -> None:
    def _stream(_r):
        def gen():
            yield "partial"
            raise ProviderError(ProviderFailure(ProviderErrorKind.SERVER_ERROR, "502", status_code=502))

        return ProviderResult.success(gen())

    files = _files(3)
    store = MemoryFileStore(files)
    summary = ReviewOrchestrator(ScriptedProvider(_stream), RecordingUI(), store).run(
        _paths(files), ReviewMode.GENERAL
    )
    assert summary.status is SessionStatus.ABORTED
    assert summary.reviewed == 1 and summary.errors == 1
    assert store.writes == []


def test_file_local_failures_continue_the_session() -> None:
    files = _files(4)
    store = MemoryFileStore(files)
    ui = RecordingUI(Decision.APPLY)

    def respond(request: ProviderRequest) -> ProviderResult:
        if request.path.endswith("f1.py"):
            return ProviderResult.failure(ProviderFailure(ProviderErrorKind.PAYLOAD_TOO_LARGE, "413", status_code=413))
        if request.path.endswith("f2.py"):
            raise RuntimeError("socket hiccup")
        if request.path.endswith("f3.py"):
            return ProviderResult.failure(ProviderFailure(ProviderErrorKind.UNKNOWN, "400 bad request", 400))
        return _improved(request)

    summary = ReviewOrchestrator(ScriptedProvider(respond), ui, store).run(_paths(files), ReviewMode.GENERAL)

    assert summary.status is SessionStatus.COMPLETED
    assert summary.errors == 3
    assert summary.modified == 1
    assert summary.reviewed == 4
    assert _conserved(summary)


def test_unknown_aborts_when_configured() -> None:
    files = _files(3)
    provider = ScriptedProvider(
        lambda _r: ProviderResult.failure(ProviderFailure(ProviderErrorKind.UNKNOWN, "odd"))
    )
    summary = ReviewOrchestrator(
        provider, RecordingUI(), MemoryFileStore(files), classifier=ErrorClassifier(abort_on_unknown=True)
    ).run(_paths(files), ReviewMode.GENERAL)
    assert summary.status is SessionStatus.ABORTED
    assert len(provider.requests) == 1


def test_cancellation_after_second_file() -> None:
    files = _files(5)
    store = MemoryFileStore(files)
    ui = RecordingUI(Decision.SKIP)
    token = CancellationToken()
    provider = ScriptedProvider(_improved)

    def respond_then_cancel(request: ProviderRequest) -> ProviderResult:
        if request.path.endswith("f2.py"):
            token.cancel()
        return _improved(request)

    provider.respond = respond_then_cancel
    summary = ReviewOrchestrator(provider, ui, store).run(_paths(files), ReviewMode.GENERAL, token)

    assert summary.status is SessionStatus.CANCELLED
    assert summary.reviewed == 2
    assert store.reads == [Path("/repo/f1.py"), Path("/repo/f2.py")]
    assert [r.path for r in provider.requests] == ["/repo/f1.py", "/repo/f2.py"]
    assert ("warning", "AI review cancelled by user") in ui.messages


def test_cancellation_keeps_earlier_applies() -> None:
    files = _files(3)
    store = MemoryFileStore(files)
    token = CancellationToken()
    ui = RecordingUI(Decision.APPLY)
    ui.on_progress = lambda index: token.cancel() if index == 1 else None

    summary = ReviewOrchestrator(ScriptedProvider(_improved), ui, store).run(
        _paths(files), ReviewMode.GENERAL, token
    )
    assert summary.modified == 1
    assert [p for p, _ in store.writes] == [Path("/repo/f1.py")]
    assert summary.status is SessionStatus.CANCELLED


def test_read_failures_and_empty_files_are_excluded() -> None:
    store = MemoryFileStore(
        {
            "/repo/ok.py": b"x = 1\n",
            "/repo/empty.py": b"   \n",
            "/repo/binary.py": b"\xff\xfe\x00",
        }
    )
    paths = [Path("/repo/missing.py"), Path("/repo/empty.py"), Path("/repo/binary.py"), Path("/repo/ok.py")]
    ui = RecordingUI(Decision.SKIP)
    provider = ScriptedProvider(_improved)

    summary = ReviewOrchestrator(provider, ui, store).run(paths, ReviewMode.GENERAL)

    assert summary.reviewed == 1 and summary.skipped == 1
    assert [r.path for r in provider.requests] == ["/repo/ok.py"]
    warnings = [m for kind, m, *_ in ui.messages if kind == "warning"]
    assert any("not found" in w.lower() for w in warnings)
    assert any("utf-8" in w.lower() for w in warnings)


def test_write_failure_is_a_warning_and_counts_as_skip() -> None:
    files = _files(2)
    store = MemoryFileStore(files)
    store.fail_writes = True
    ui = RecordingUI(Decision.APPLY)

    summary = ReviewOrchestrator(ScriptedProvider(_improved), ui, store).run(_paths(files), ReviewMode.GENERAL)

    assert summary.skipped == 2 and summary.modified == 0
    assert summary.status is SessionStatus.COMPLETED
    assert _conserved(summary)


def test_empty_candidate_list_completes_with_zero_counters() -> None:
    ui = RecordingUI()
    summary = ReviewOrchestrator(ScriptedProvider(_improved), ui, MemoryFileStore({})).run([], ReviewMode.SECURITY)
    assert summary == SessionSummary(mode=ReviewMode.SECURITY)
    assert ui.summaries == [summary]
    assert ui.closed == 1


def test_mixed_session_conserves_counts_and_reports_once() -> None:
    files = {f"/repo/m{i}.py": f"v = {i}\n".encode() for i in range(6)}
    store = MemoryFileStore(files)
    decisions = iter([Decision.APPLY, Decision.SKIP, Decision.APPLY])

    class AlternatingUI(RecordingUI):
        def confirm(self, diff: DiffRequest) -> Optional[Decision]:
            self.diffs.append(diff)
            return next(decisions)

    def respond(request: ProviderRequest) -> ProviderResult:
        idx = int(request.path[-4])
        if idx in (0, 1):
            return ProviderResult.success(request.content)
        if idx == 2:
            return ProviderResult.failure(ProviderFailure(ProviderErrorKind.PAYLOAD_TOO_LARGE, "too big", 413))
        return _improved(request)

    ui = AlternatingUI()
    summary = ReviewOrchestrator(ScriptedProvider(respond), ui, store).run(_paths(files), ReviewMode.CLEANUP)

    assert (summary.no_change, summary.errors, summary.modified, summary.skipped) == (2, 1, 2, 1)
    assert summary.reviewed == 6
    assert _conserved(summary)
    assert ui.summaries == [summary]
    assert ui.closed == 1


def test_ui_closed_even_if_ui_raises() -> None:
    class BrokenUI(RecordingUI):
        def confirm(self, diff: DiffRequest) -> Optional[Decision]:
            raise RuntimeError("terminal went away")

    ui = BrokenUI()
    with pytest.raises(RuntimeError):
        ReviewOrchestrator(ScriptedProvider(_improved), ui, MemoryFileStore(_files(1))).run(
            _paths(_files(1)), ReviewMode.GENERAL
        )
    assert ui.closed == 1
