"""Reference ledger: an append-only arena of record snapshots.

Each ``RecordOutput`` is immutable and keyed by its ``output_id``; spending
marks the predecessor consumed and links it to exactly one successor. The
ledger serializes ``try_apply`` calls, so of two competing spends of one
output only the first is accepted and the rest get a ``CONFLICT`` rejection.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from tradeline.constants import ROLE_PLATFORM, STATE_PROPOSED
from tradeline.core.authorization import check_authorization
from tradeline.core.continuation import RecordOutput, genesis_output
from tradeline.core.errors import (
    ConflictError,
    InvalidRecordError,
    TransitionError,
    TransitionRejection,
)
from tradeline.core.record import TradeRecord, validate_record
from tradeline.core.signing import Ed25519Verifier, SignatureSet, SignatureVerifier, open_message
from tradeline.core.transitions import apply_transition
from tradeline.core.verification import record_mismatches
from tradeline.stores.records import InMemoryRecordStore, RecordStore

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ApplyResult:
    accepted: bool
    spent_output_id: str
    output: RecordOutput | None = None
    rejection: TransitionRejection | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "accepted": self.accepted,
            "spent_output_id": self.spent_output_id,
        }
        if self.output is not None:
            payload["output"] = self.output.to_dict()
        if self.rejection is not None:
            payload["rejection"] = self.rejection.to_dict()
        return payload


class Ledger:
    def __init__(
        self,
        store: RecordStore | None = None,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        self._store: RecordStore = store if store is not None else InMemoryRecordStore()
        self._verifier: SignatureVerifier = verifier if verifier is not None else Ed25519Verifier()
        self._lock = threading.Lock()

    @property
    def store(self) -> RecordStore:
        return self._store

    def open_trade(self, record: TradeRecord, signatures: SignatureSet, nonce: str) -> RecordOutput:
        """Insert the genesis output of a new trade, authored by the platform.

        ``nonce`` is chosen by the platform and covered by its signature, so
        repeat trades on identical terms get distinct trade ids while a
        replayed open of the same signed genesis is a conflict.
        """
        validate_record(record)
        if record.state != STATE_PROPOSED:
            raise InvalidRecordError(f"A trade must open in {STATE_PROPOSED}, got {record.state}")
        output = genesis_output(record, nonce)
        check_authorization(
            record,
            frozenset({ROLE_PLATFORM}),
            signatures,
            open_message(record, nonce),
            self._verifier,
            transition="open",
        )
        with self._lock:
            if self._store.get(output.output_id) is not None:
                raise ConflictError(
                    "Trade already exists on the ledger",
                    transition="open",
                    output_id=output.output_id,
                )
            self._store.put(output)
        logger.info("Opened trade %s", output.trade_id)
        return output

    def try_apply(self, output_id: str, transition: str, signatures: SignatureSet) -> ApplyResult:
        with self._lock:
            try:
                successor = self._apply_locked(output_id, transition, signatures)
            except TransitionError as exc:
                logger.warning(
                    "Rejected %s on %s: %s %s",
                    transition,
                    output_id,
                    exc.rejection.code,
                    exc.rejection.message,
                )
                return ApplyResult(accepted=False, spent_output_id=output_id, rejection=exc.rejection)

        logger.info(
            "Accepted %s on %s -> %s (state %s)",
            transition,
            output_id,
            successor.output_id,
            successor.record.state,
        )
        return ApplyResult(accepted=True, spent_output_id=output_id, output=successor)

    def _apply_locked(self, output_id: str, transition: str, signatures: SignatureSet) -> RecordOutput:
        output = self._store.get(output_id)
        if output is None:
            raise ConflictError("Unknown output", transition=transition, output_id=output_id)
        spent_by = self._store.spent_by(output_id)
        if spent_by is not None:
            raise ConflictError(
                "Output already spent",
                transition=transition,
                output_id=output_id,
                details={"spent_by": spent_by},
            )
        if output.predecessor_id is not None:
            linked = self._store.spent_by(output.predecessor_id)
            if linked != output.output_id:
                raise ConflictError(
                    "Output is not on the trade lineage",
                    transition=transition,
                    output_id=output_id,
                    details={"predecessor_id": output.predecessor_id, "spent_by": linked},
                )

        successor = apply_transition(output, transition, signatures, verifier=self._verifier)

        # A successor whose spend mark loses a race stays in the store but
        # fails the lineage check above, so it can never be spent.
        self._store.put(successor)
        if not self._store.mark_spent(output_id, successor.output_id):
            raise ConflictError(
                "Output already spent",
                transition=transition,
                output_id=output_id,
                details={"spent_by": self._store.spent_by(output_id)},
            )
        return successor

    def get(self, output_id: str) -> RecordOutput:
        output = self._store.get(output_id)
        if output is None:
            raise KeyError(f"Unknown output: {output_id}")
        return output

    def is_spent(self, output_id: str) -> bool:
        return self._store.spent_by(output_id) is not None

    def lineage(self, trade_id: str) -> list[RecordOutput]:
        """Every snapshot of a trade from genesis to the current unspent output."""
        chain = [self.get(trade_id)]
        next_id = self._store.spent_by(trade_id)
        while next_id is not None:
            chain.append(self.get(next_id))
            next_id = self._store.spent_by(next_id)
        return chain

    def current(self, trade_id: str) -> RecordOutput:
        return self.lineage(trade_id)[-1]

    def trade_ids(self) -> list[str]:
        ids: list[str] = []
        for output_id in self._store.list_ids():
            output = self._store.get(output_id)
            if output is not None and output.is_genesis:
                ids.append(output.output_id)
        return ids

    def verify(
        self,
        output_id: str,
        *,
        trader_a: str,
        trader_b: str,
        amount: int,
        asset_descriptor: str,
        state: str,
        platform: str | None = None,
    ) -> list[str]:
        """Return the mismatched fields for ``output_id``; empty means verified.

        A spent output no longer carries the current status, so it reports
        ``output_id`` as a mismatch.
        """
        output = self.get(output_id)
        mismatches = record_mismatches(
            output.record,
            trader_a=trader_a,
            trader_b=trader_b,
            amount=amount,
            asset_descriptor=asset_descriptor,
            state=state,
            platform=platform,
        )
        if self.is_spent(output_id):
            mismatches.append("output_id")
        return mismatches


__all__ = ["ApplyResult", "Ledger"]
