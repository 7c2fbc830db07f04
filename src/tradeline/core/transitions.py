"""Transition rules of the trade lifecycle.

Each transition names the state it must start from, the signer roles whose
signatures are mandatory, and the state it produces:

==========  ==========  =====================  ==========
transition  source      authorization set      target
==========  ==========  =====================  ==========
propose     PROPOSED    platform               PROPOSED
approve     PROPOSED    trader_a + trader_b    AGREED
execute     AGREED      platform               EXECUTED
settle      EXECUTED    platform               SETTLED
==========  ==========  =====================  ==========

``propose`` leaves the state at PROPOSED. It still spends the current output
and produces a successor, so it is a state no-op but not a ledger no-op.
Nothing leaves SETTLED.

Validation is a pure function: precondition first, then authorization, then
the successor record. Nothing here touches a ledger.
"""
from __future__ import annotations

from dataclasses import dataclass

from tradeline.constants import (
    ROLE_PLATFORM,
    ROLE_TRADER_A,
    ROLE_TRADER_B,
    STATE_AGREED,
    STATE_EXECUTED,
    STATE_PROPOSED,
    STATE_SETTLED,
    TRANSITION_APPROVE,
    TRANSITION_EXECUTE,
    TRANSITION_PROPOSE,
    TRANSITION_SETTLE,
)
from tradeline.core.authorization import check_authorization
from tradeline.core.continuation import RecordOutput, encode_continuation
from tradeline.core.errors import StateMismatchError, UnknownTransitionError
from tradeline.core.record import TradeRecord, TradeState, is_terminal
from tradeline.core.signing import Ed25519Verifier, SignatureSet, SignatureVerifier, spend_message


@dataclass(slots=True, frozen=True)
class TransitionRule:
    name: str
    source: TradeState
    required_signers: frozenset[str]
    target: TradeState


TRANSITIONS: dict[str, TransitionRule] = {
    TRANSITION_PROPOSE: TransitionRule(
        name=TRANSITION_PROPOSE,
        source=STATE_PROPOSED,
        required_signers=frozenset({ROLE_PLATFORM}),
        target=STATE_PROPOSED,
    ),
    TRANSITION_APPROVE: TransitionRule(
        name=TRANSITION_APPROVE,
        source=STATE_PROPOSED,
        required_signers=frozenset({ROLE_TRADER_A, ROLE_TRADER_B}),
        target=STATE_AGREED,
    ),
    TRANSITION_EXECUTE: TransitionRule(
        name=TRANSITION_EXECUTE,
        source=STATE_AGREED,
        required_signers=frozenset({ROLE_PLATFORM}),
        target=STATE_EXECUTED,
    ),
    TRANSITION_SETTLE: TransitionRule(
        name=TRANSITION_SETTLE,
        source=STATE_EXECUTED,
        required_signers=frozenset({ROLE_PLATFORM}),
        target=STATE_SETTLED,
    ),
}


def get_rule(transition: str) -> TransitionRule:
    rule = TRANSITIONS.get(transition)
    if rule is None:
        supported = ", ".join(sorted(TRANSITIONS))
        raise UnknownTransitionError(
            f"Unknown transition {transition!r}. Supported: {supported}",
            transition=transition,
        )
    return rule


def available_transitions(state: str) -> list[str]:
    return [name for name, rule in TRANSITIONS.items() if rule.source == state]


def validate_transition(
    record: TradeRecord,
    transition: str,
    signatures: SignatureSet,
    *,
    message: bytes,
    verifier: SignatureVerifier | None = None,
    output_id: str | None = None,
) -> TradeRecord:
    """Return the successor record or raise a ``TransitionError``."""
    rule = get_rule(transition)

    if record.state != rule.source:
        reason = "record is terminal" if is_terminal(record.state) else "precondition not met"
        raise StateMismatchError(
            f"Cannot {transition} from state {record.state}: {reason} (requires {rule.source})",
            transition=transition,
            output_id=output_id,
            details={"expected": rule.source, "observed": record.state},
        )

    check_authorization(
        record,
        rule.required_signers,
        signatures,
        message,
        verifier or Ed25519Verifier(),
        transition=transition,
        output_id=output_id,
    )
    return record.with_state(rule.target)


def apply_transition(
    output: RecordOutput,
    transition: str,
    signatures: SignatureSet,
    *,
    verifier: SignatureVerifier | None = None,
) -> RecordOutput:
    """Validate ``transition`` against ``output`` and build the successor output."""
    successor = validate_transition(
        output.record,
        transition,
        signatures,
        message=spend_message(output.output_id, transition),
        verifier=verifier,
        output_id=output.output_id,
    )
    return encode_continuation(successor, output)


__all__ = [
    "TRANSITIONS",
    "TransitionRule",
    "apply_transition",
    "available_transitions",
    "get_rule",
    "validate_transition",
]
