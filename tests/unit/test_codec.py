from __future__ import annotations

import json

import pytest

from tradeline.core.codec import decode_output, encode_output
from tradeline.core.continuation import RecordOutput, encode_continuation
from tradeline.core.errors import RecordFormatError


def _payload(output: RecordOutput) -> dict:
    return json.loads(encode_output(output))


def test_genesis_wire_form(genesis: RecordOutput) -> None:
    payload = _payload(genesis)
    assert payload["schema_version"] == "1"
    assert payload["sequence"] == 0
    assert payload["trade_id"] is None
    assert payload["predecessor_id"] is None
    assert payload["nonce"] == genesis.nonce
    assert payload["record"]["state"] == "PROPOSED"
    assert payload["record"]["amount"] == 1000


def test_encoding_is_canonical(genesis: RecordOutput) -> None:
    raw = encode_output(genesis)
    assert raw == json.dumps(json.loads(raw), sort_keys=True, separators=(",", ":")).encode("ascii")


def test_decode_restores_ids(genesis: RecordOutput) -> None:
    successor = encode_continuation(genesis.record.with_state("AGREED"), genesis)

    assert decode_output(encode_output(genesis)) == genesis
    decoded = decode_output(encode_output(successor))
    assert decoded.output_id == successor.output_id
    assert decoded.trade_id == genesis.trade_id
    assert decoded.predecessor_id == genesis.output_id


def test_decode_rejects_invalid_json() -> None:
    with pytest.raises(RecordFormatError, match="valid JSON"):
        decode_output(b"{not json")


def test_decode_rejects_unknown_schema(genesis: RecordOutput) -> None:
    payload = _payload(genesis)
    payload["schema_version"] = "0"
    with pytest.raises(RecordFormatError, match="schema_version"):
        decode_output(json.dumps(payload))


def test_decode_rejects_float_amount(genesis: RecordOutput) -> None:
    payload = _payload(genesis)
    payload["record"]["amount"] = 1000.0
    with pytest.raises(RecordFormatError, match="amount"):
        decode_output(json.dumps(payload))


def test_decode_rejects_unknown_state(genesis: RecordOutput) -> None:
    payload = _payload(genesis)
    payload["record"]["state"] = "CANCELLED"
    with pytest.raises(RecordFormatError, match="state"):
        decode_output(json.dumps(payload))


def test_decode_rejects_extra_record_fields(genesis: RecordOutput) -> None:
    payload = _payload(genesis)
    payload["record"]["price"] = 3
    with pytest.raises(RecordFormatError, match="unexpected"):
        decode_output(json.dumps(payload))


def test_decode_rejects_genesis_with_predecessor(genesis: RecordOutput) -> None:
    payload = _payload(genesis)
    payload["predecessor_id"] = "ab" * 32
    with pytest.raises(RecordFormatError, match="Genesis"):
        decode_output(json.dumps(payload))


def test_decode_rejects_successor_without_trade_id(genesis: RecordOutput) -> None:
    successor = encode_continuation(genesis.record.with_state("AGREED"), genesis)
    payload = _payload(successor)
    payload["trade_id"] = None
    with pytest.raises(RecordFormatError, match="trade_id"):
        decode_output(json.dumps(payload))


def test_decode_rejects_genesis_without_nonce(genesis: RecordOutput) -> None:
    payload = _payload(genesis)
    payload["nonce"] = None
    with pytest.raises(RecordFormatError, match="nonce"):
        decode_output(json.dumps(payload))


def test_decode_rejects_nonce_on_successor(genesis: RecordOutput) -> None:
    successor = encode_continuation(genesis.record.with_state("AGREED"), genesis)
    payload = _payload(successor)
    payload["nonce"] = genesis.nonce
    with pytest.raises(RecordFormatError, match="nonce"):
        decode_output(json.dumps(payload))


def test_decode_rejects_unknown_output_fields(genesis: RecordOutput) -> None:
    payload = _payload(genesis)
    payload["memo"] = "hi"
    with pytest.raises(RecordFormatError, match="unexpected"):
        decode_output(json.dumps(payload))
