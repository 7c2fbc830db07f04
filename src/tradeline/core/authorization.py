from __future__ import annotations

from collections.abc import Iterable

from tradeline.constants import SIGNER_ROLES
from tradeline.core.errors import AuthorizationError
from tradeline.core.record import TradeRecord
from tradeline.core.signing import SignatureSet, SignatureVerifier


def missing_signers(required: Iterable[str], signatures: SignatureSet) -> list[str]:
    return sorted(role for role in required if role not in signatures)


def check_authorization(
    record: TradeRecord,
    required: frozenset[str],
    signatures: SignatureSet,
    message: bytes,
    verifier: SignatureVerifier,
    *,
    transition: str | None = None,
    output_id: str | None = None,
) -> None:
    """Raise ``AuthorizationError`` unless every required role signed ``message``.

    Signatures under roles outside ``required`` are ignored. The check is
    all-or-nothing: one absent or bad co-signature rejects the whole set.
    """
    unknown = sorted(role for role in required if role not in SIGNER_ROLES)
    if unknown:
        raise ValueError(f"Unknown signer roles in authorization set: {', '.join(unknown)}")

    absent = missing_signers(required, signatures)
    if absent:
        raise AuthorizationError(
            f"Missing required signature(s): {', '.join(absent)}",
            transition=transition,
            output_id=output_id,
            details={"missing": absent, "required": sorted(required)},
        )

    invalid = sorted(
        role
        for role in required
        if not verifier.verify(record.public_key_for(role), message, signatures[role])
    )
    if invalid:
        raise AuthorizationError(
            f"Signature verification failed for: {', '.join(invalid)}",
            transition=transition,
            output_id=output_id,
            details={"invalid": invalid, "required": sorted(required)},
        )


__all__ = ["check_authorization", "missing_signers"]
