"""Trade record data model.

A ``TradeRecord`` is the full status of one bilateral trade: the three party
identities, the quantity and instrument (all fixed at creation), and the
lifecycle ``state``, which is the only field a transition may change.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any, Literal

from tradeline.constants import (
    ED25519_PUBLIC_KEY_BYTES,
    SIGNER_ROLES,
    STATE_AGREED,
    STATE_EXECUTED,
    STATE_PROPOSED,
    STATE_SETTLED,
)
from tradeline.core.errors import InvalidRecordError

TradeState = Literal["PROPOSED", "AGREED", "EXECUTED", "SETTLED"]

STATE_ORDER: tuple[TradeState, ...] = (
    STATE_PROPOSED,
    STATE_AGREED,
    STATE_EXECUTED,
    STATE_SETTLED,
)
TERMINAL_STATES = {STATE_SETTLED}

IMMUTABLE_FIELDS = ("trader_a", "trader_b", "platform", "amount", "asset_descriptor")
RECORD_FIELDS = (*IMMUTABLE_FIELDS, "state")

_PUBLIC_KEY_RE = re.compile(rf"[0-9a-f]{{{ED25519_PUBLIC_KEY_BYTES * 2}}}")


def state_rank(state: str) -> int:
    try:
        return STATE_ORDER.index(state)  # type: ignore[arg-type]
    except ValueError:
        raise InvalidRecordError(f"Unknown trade state: {state!r}") from None


def is_terminal(state: str) -> bool:
    return state in TERMINAL_STATES


def is_public_key_hex(value: Any) -> bool:
    return isinstance(value, str) and _PUBLIC_KEY_RE.fullmatch(value) is not None


@dataclass(slots=True, frozen=True)
class TradeRecord:
    trader_a: str
    trader_b: str
    platform: str
    amount: int
    asset_descriptor: str
    state: TradeState = STATE_PROPOSED

    def with_state(self, state: TradeState) -> TradeRecord:
        """Copy every field unchanged except ``state``."""
        return replace(self, state=state)

    def same_terms(self, other: TradeRecord) -> bool:
        return all(getattr(self, name) == getattr(other, name) for name in IMMUTABLE_FIELDS)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trader_a": self.trader_a,
            "trader_b": self.trader_b,
            "platform": self.platform,
            "amount": self.amount,
            "asset_descriptor": self.asset_descriptor,
            "state": self.state,
        }

    def public_key_for(self, role: str) -> str:
        if role not in SIGNER_ROLES:
            raise KeyError(f"Unknown signer role: {role!r}")
        return str(getattr(self, role))


def validate_record(record: TradeRecord) -> TradeRecord:
    """Check the structural invariants a record must satisfy to exist on the ledger."""
    for role in SIGNER_ROLES:
        value = getattr(record, role)
        if not is_public_key_hex(value):
            raise InvalidRecordError(f"`{role}` must be a {ED25519_PUBLIC_KEY_BYTES}-byte lowercase hex key")
    identities = {record.trader_a, record.trader_b, record.platform}
    if len(identities) != 3:
        raise InvalidRecordError("trader_a, trader_b and platform must be distinct identities")
    if not isinstance(record.amount, int) or isinstance(record.amount, bool):
        raise InvalidRecordError("`amount` must be an integer")
    if not isinstance(record.asset_descriptor, str):
        raise InvalidRecordError("`asset_descriptor` must be a string")
    state_rank(record.state)
    return record


__all__ = [
    "IMMUTABLE_FIELDS",
    "RECORD_FIELDS",
    "STATE_ORDER",
    "TERMINAL_STATES",
    "TradeRecord",
    "TradeState",
    "is_public_key_hex",
    "is_terminal",
    "state_rank",
    "validate_record",
]
