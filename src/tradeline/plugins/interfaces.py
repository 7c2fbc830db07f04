from __future__ import annotations

from typing import Protocol

from tradeline.core.continuation import RecordOutput


class FinalityHook(Protocol):
    # Post-trade observers. Called by tooling after a settle is accepted,
    # never by the state machine itself.
    def on_finalized(self, output: RecordOutput) -> None:
        ...
