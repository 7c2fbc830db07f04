"""Tradeline: a bilateral trade lifecycle enforced as a single-spend record chain."""
from __future__ import annotations

from tradeline.core.continuation import RecordOutput, encode_continuation, new_nonce
from tradeline.core.errors import (
    AuthorizationError,
    ConflictError,
    StateMismatchError,
    TransitionError,
    TransitionRejection,
)
from tradeline.core.record import TradeRecord, TradeState
from tradeline.core.transitions import validate_transition
from tradeline.core.verification import verify_record
from tradeline.ledger import ApplyResult, Ledger

__version__ = "0.2.0"

__all__ = [
    "ApplyResult",
    "AuthorizationError",
    "ConflictError",
    "Ledger",
    "RecordOutput",
    "StateMismatchError",
    "TradeRecord",
    "TradeState",
    "TransitionError",
    "TransitionRejection",
    "__version__",
    "encode_continuation",
    "new_nonce",
    "validate_transition",
    "verify_record",
]
