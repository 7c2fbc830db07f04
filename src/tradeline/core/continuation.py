"""Construction of record-carrying outputs.

``encode_continuation`` is a pure construction step: it wraps a successor
record into a new output linked to its predecessor. It does not check the
record against anything; the transition validator has already done that.

A genesis output carries a random ``nonce`` so that two trades with the same
parties and terms still get distinct trade ids. Successors carry no nonce;
their predecessor link already makes them unique.
"""
from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from typing import Any

from tradeline.constants import GENESIS_NONCE_BYTES, RECORD_SCHEMA_VERSION
from tradeline.core.canonical import canonical_bytes, sha256_hex
from tradeline.core.errors import InvalidRecordError
from tradeline.core.record import TradeRecord

_NONCE_RE = re.compile(rf"[0-9a-f]{{{GENESIS_NONCE_BYTES * 2}}}")


def new_nonce() -> str:
    return secrets.token_hex(GENESIS_NONCE_BYTES)


def is_nonce_hex(value: Any) -> bool:
    return isinstance(value, str) and _NONCE_RE.fullmatch(value) is not None


@dataclass(slots=True, frozen=True)
class RecordOutput:
    output_id: str
    trade_id: str
    sequence: int
    predecessor_id: str | None
    record: TradeRecord
    nonce: str | None = None
    schema_version: str = RECORD_SCHEMA_VERSION

    @property
    def is_genesis(self) -> bool:
        return self.predecessor_id is None

    def wire_payload(self) -> dict[str, Any]:
        return wire_payload(
            record=self.record,
            trade_id=None if self.is_genesis else self.trade_id,
            sequence=self.sequence,
            predecessor_id=self.predecessor_id,
            nonce=self.nonce,
            schema_version=self.schema_version,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "output_id": self.output_id,
            "trade_id": self.trade_id,
            "sequence": self.sequence,
            "predecessor_id": self.predecessor_id,
            "nonce": self.nonce,
            "record": self.record.to_dict(),
            "schema_version": self.schema_version,
        }


def wire_payload(
    *,
    record: TradeRecord,
    trade_id: str | None,
    sequence: int,
    predecessor_id: str | None,
    nonce: str | None = None,
    schema_version: str = RECORD_SCHEMA_VERSION,
) -> dict[str, Any]:
    # The genesis output carries no trade_id: its own hash becomes the trade_id.
    return {
        "schema_version": schema_version,
        "trade_id": trade_id,
        "sequence": sequence,
        "predecessor_id": predecessor_id,
        "nonce": nonce,
        "record": record.to_dict(),
    }


def output_id_for(payload: dict[str, Any]) -> str:
    return sha256_hex(canonical_bytes(payload))


def genesis_output(record: TradeRecord, nonce: str) -> RecordOutput:
    if not is_nonce_hex(nonce):
        raise InvalidRecordError(f"Genesis nonce must be {GENESIS_NONCE_BYTES} bytes of lowercase hex")
    payload = wire_payload(record=record, trade_id=None, sequence=0, predecessor_id=None, nonce=nonce)
    output_id = output_id_for(payload)
    return RecordOutput(
        output_id=output_id,
        trade_id=output_id,
        sequence=0,
        predecessor_id=None,
        record=record,
        nonce=nonce,
    )


def encode_continuation(successor: TradeRecord, predecessor: RecordOutput) -> RecordOutput:
    sequence = predecessor.sequence + 1
    payload = wire_payload(
        record=successor,
        trade_id=predecessor.trade_id,
        sequence=sequence,
        predecessor_id=predecessor.output_id,
        schema_version=predecessor.schema_version,
    )
    return RecordOutput(
        output_id=output_id_for(payload),
        trade_id=predecessor.trade_id,
        sequence=sequence,
        predecessor_id=predecessor.output_id,
        record=successor,
        schema_version=predecessor.schema_version,
    )


__all__ = [
    "RecordOutput",
    "encode_continuation",
    "genesis_output",
    "is_nonce_hex",
    "new_nonce",
    "output_id_for",
    "wire_payload",
]
