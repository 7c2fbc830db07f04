from __future__ import annotations

import pytest

from tradeline.core.continuation import RecordOutput, genesis_output
from tradeline.core.record import TradeRecord
from tradeline.core.signing import Ed25519Signer, spend_message


@pytest.fixture()
def signers() -> dict[str, Ed25519Signer]:
    return {
        "trader_a": Ed25519Signer.generate(),
        "trader_b": Ed25519Signer.generate(),
        "platform": Ed25519Signer.generate(),
    }


@pytest.fixture()
def record(signers: dict[str, Ed25519Signer]) -> TradeRecord:
    return TradeRecord(
        trader_a=signers["trader_a"].public_key,
        trader_b=signers["trader_b"].public_key,
        platform=signers["platform"].public_key,
        amount=1000,
        asset_descriptor="Derivative Contract",
    )


@pytest.fixture()
def nonce() -> str:
    return "5e" * 16


@pytest.fixture()
def genesis(record: TradeRecord, nonce: str) -> RecordOutput:
    return genesis_output(record, nonce)


@pytest.fixture()
def sign_spend(signers: dict[str, Ed25519Signer]):
    def _sign(output_id: str, transition: str, *roles: str) -> dict[str, bytes]:
        message = spend_message(output_id, transition)
        return {role: signers[role].sign(message) for role in roles}

    return _sign
