"""Verification query: a read-only equality check over a stored record.

The five compared values are ``trader_a``, ``trader_b``, ``amount``,
``asset_descriptor`` and ``state``. ``platform`` is compared too when the
caller supplies it.
"""
from __future__ import annotations

from typing import Any

from tradeline.core.record import TradeRecord


def _same_value(stored: Any, candidate: Any) -> bool:
    # bool is an int subclass; True must not match an amount of 1.
    if type(stored) is not type(candidate):
        return False
    return bool(stored == candidate)


def record_mismatches(
    record: TradeRecord,
    *,
    trader_a: str,
    trader_b: str,
    amount: int,
    asset_descriptor: str,
    state: str,
    platform: str | None = None,
) -> list[str]:
    candidate: dict[str, Any] = {
        "trader_a": trader_a,
        "trader_b": trader_b,
        "amount": amount,
        "asset_descriptor": asset_descriptor,
        "state": state,
    }
    if platform is not None:
        candidate["platform"] = platform
    return sorted(name for name, value in candidate.items() if not _same_value(getattr(record, name), value))


def verify_record(
    record: TradeRecord,
    *,
    trader_a: str,
    trader_b: str,
    amount: int,
    asset_descriptor: str,
    state: str,
    platform: str | None = None,
) -> bool:
    return not record_mismatches(
        record,
        trader_a=trader_a,
        trader_b=trader_b,
        amount=amount,
        asset_descriptor=asset_descriptor,
        state=state,
        platform=platform,
    )


__all__ = ["record_mismatches", "verify_record"]
