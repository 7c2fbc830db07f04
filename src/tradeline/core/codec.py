from __future__ import annotations

import json
from typing import Any

from tradeline.constants import RECORD_SCHEMA_VERSION
from tradeline.core.canonical import canonical_bytes
from tradeline.core.continuation import RecordOutput, is_nonce_hex, output_id_for, wire_payload
from tradeline.core.errors import RecordFormatError
from tradeline.core.record import RECORD_FIELDS, STATE_ORDER, TradeRecord, is_public_key_hex

_OUTPUT_FIELDS = frozenset({"schema_version", "trade_id", "sequence", "predecessor_id", "nonce", "record"})


def encode_output(output: RecordOutput) -> bytes:
    return canonical_bytes(output.wire_payload())


def _validate_record_payload(data: Any) -> TradeRecord:
    if not isinstance(data, dict):
        raise RecordFormatError("Output requires object field `record`")

    for role in ("trader_a", "trader_b", "platform"):
        if not is_public_key_hex(data.get(role)):
            raise RecordFormatError(f"Record field `{role}` must be a lowercase hex Ed25519 public key")

    amount = data.get("amount")
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise RecordFormatError("Record field `amount` must be an integer")

    asset_descriptor = data.get("asset_descriptor")
    if not isinstance(asset_descriptor, str):
        raise RecordFormatError("Record field `asset_descriptor` must be a string")

    state = data.get("state")
    if state not in STATE_ORDER:
        raise RecordFormatError(f"Record requires supported `state`, got: {state!r}")

    unknown = sorted(set(data) - set(RECORD_FIELDS))
    if unknown:
        raise RecordFormatError(f"Record has unexpected fields: {', '.join(unknown)}")

    return TradeRecord(
        trader_a=data["trader_a"],
        trader_b=data["trader_b"],
        platform=data["platform"],
        amount=amount,
        asset_descriptor=asset_descriptor,
        state=state,
    )


def validate_output_payload(data: dict[str, Any]) -> RecordOutput:
    schema_version = data.get("schema_version")
    if schema_version != RECORD_SCHEMA_VERSION:
        raise RecordFormatError(
            f"Unsupported record schema_version '{schema_version}'. Expected '{RECORD_SCHEMA_VERSION}'."
        )

    sequence = data.get("sequence")
    if not isinstance(sequence, int) or isinstance(sequence, bool) or sequence < 0:
        raise RecordFormatError("Output requires non-negative integer `sequence`")

    predecessor_id = data.get("predecessor_id")
    trade_id = data.get("trade_id")
    nonce = data.get("nonce")
    if sequence == 0:
        if predecessor_id is not None or trade_id is not None:
            raise RecordFormatError("Genesis output must not carry `predecessor_id` or `trade_id`")
        if not is_nonce_hex(nonce):
            raise RecordFormatError("Genesis output requires a lowercase hex `nonce`")
    else:
        if not isinstance(predecessor_id, str) or not predecessor_id:
            raise RecordFormatError("Output requires non-empty string field `predecessor_id`")
        if not isinstance(trade_id, str) or not trade_id:
            raise RecordFormatError("Output requires non-empty string field `trade_id`")
        if nonce is not None:
            raise RecordFormatError("Only the genesis output carries a `nonce`")

    unknown = sorted(set(data) - _OUTPUT_FIELDS)
    if unknown:
        raise RecordFormatError(f"Output has unexpected fields: {', '.join(unknown)}")

    record = _validate_record_payload(data.get("record"))
    payload = wire_payload(
        record=record,
        trade_id=trade_id,
        sequence=sequence,
        predecessor_id=predecessor_id,
        nonce=nonce,
        schema_version=schema_version,
    )
    output_id = output_id_for(payload)
    return RecordOutput(
        output_id=output_id,
        trade_id=output_id if trade_id is None else trade_id,
        sequence=sequence,
        predecessor_id=predecessor_id,
        record=record,
        nonce=nonce,
        schema_version=schema_version,
    )


def decode_output(data: bytes | str) -> RecordOutput:
    try:
        raw = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RecordFormatError(f"Output is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise RecordFormatError("Output payload must be an object")
    return validate_output_payload(raw)


__all__ = [
    "decode_output",
    "encode_output",
    "validate_output_payload",
]
