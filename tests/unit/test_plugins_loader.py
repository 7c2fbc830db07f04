from __future__ import annotations

import logging
from typing import Any

import pytest

from tradeline.core.continuation import RecordOutput, encode_continuation
from tradeline.plugins import loader


class _FakeEntryPoint:
    def __init__(self, obj: Any) -> None:
        self._obj = obj

    def load(self) -> Any:
        return self._obj


class _FakeEntryPoints:
    def __init__(self, groups: dict[str, list[_FakeEntryPoint]]) -> None:
        self._groups = groups

    def select(self, *, group: str) -> list[_FakeEntryPoint]:
        return self._groups.get(group, [])


class _RecordingHook:
    seen: list[str] = []

    def on_finalized(self, output: RecordOutput) -> None:
        _RecordingHook.seen.append(output.output_id)


def test_run_finality_hooks(monkeypatch: pytest.MonkeyPatch, genesis: RecordOutput) -> None:
    _RecordingHook.seen = []
    fake = _FakeEntryPoints({"tradeline.finality_hooks": [_FakeEntryPoint(_RecordingHook)]})
    monkeypatch.setattr(loader, "entry_points", lambda: fake)
    settled = encode_continuation(genesis.record.with_state("SETTLED"), genesis)

    assert loader.run_finality_hooks(settled) == 1
    assert _RecordingHook.seen == [settled.output_id]


def test_run_finality_hooks_refuses_non_final(monkeypatch: pytest.MonkeyPatch, genesis: RecordOutput) -> None:
    monkeypatch.setattr(loader, "entry_points", lambda: _FakeEntryPoints({}))
    with pytest.raises(ValueError, match="not final"):
        loader.run_finality_hooks(genesis)


class _FailingHook:
    def on_finalized(self, output: RecordOutput) -> None:
        raise RuntimeError("notification service down")


def test_failing_hook_is_logged_and_skipped(monkeypatch: pytest.MonkeyPatch, genesis: RecordOutput, caplog) -> None:
    _RecordingHook.seen = []
    fake = _FakeEntryPoints(
        {"tradeline.finality_hooks": [_FakeEntryPoint(_FailingHook), _FakeEntryPoint(_RecordingHook)]}
    )
    monkeypatch.setattr(loader, "entry_points", lambda: fake)
    settled = encode_continuation(genesis.record.with_state("SETTLED"), genesis)

    with caplog.at_level(logging.WARNING, logger="tradeline.plugins.loader"):
        assert loader.run_finality_hooks(settled) == 1

    assert _RecordingHook.seen == [settled.output_id]
    assert "_FailingHook" in caplog.text
    assert "notification service down" in caplog.text
