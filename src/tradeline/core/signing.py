"""Signature capability used by the authorization checker.

Transition logic only sees ``SignatureVerifier``; the scheme behind it can be
swapped without touching the state machine. The default is Ed25519 via PyNaCl.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from tradeline.constants import ACTION_OPEN, RECORD_SCHEMA_VERSION
from tradeline.core.canonical import canonical_bytes
from tradeline.core.record import TradeRecord

SignatureSet = Mapping[str, bytes]


@runtime_checkable
class SignatureVerifier(Protocol):
    """Black-box predicate over (public key, signed message, signature)."""

    def verify(self, public_key: str, message: bytes, signature: bytes) -> bool: ...


class Ed25519Verifier:
    def verify(self, public_key: str, message: bytes, signature: bytes) -> bool:
        try:
            verify_key = VerifyKey(public_key.encode("ascii"), encoder=HexEncoder)
            verify_key.verify(message, bytes(signature))
        except (BadSignatureError, ValueError, TypeError):
            return False
        return True


class Ed25519Signer:
    """Holds one signing key. Key custody is the caller's concern."""

    __slots__ = ("_signing_key",)

    def __init__(self, signing_key: SigningKey) -> None:
        self._signing_key = signing_key

    @classmethod
    def generate(cls) -> Ed25519Signer:
        return cls(SigningKey.generate())

    @classmethod
    def from_hex(cls, seed_hex: str) -> Ed25519Signer:
        return cls(SigningKey(seed_hex.strip().encode("ascii"), encoder=HexEncoder))

    @property
    def public_key(self) -> str:
        return self._signing_key.verify_key.encode(encoder=HexEncoder).decode("ascii")

    def seed_hex(self) -> str:
        return self._signing_key.encode(encoder=HexEncoder).decode("ascii")

    def sign(self, message: bytes) -> bytes:
        return bytes(self._signing_key.sign(message).signature)


def spend_message(output_id: str, transition: str) -> bytes:
    """Bytes a party signs to authorize ``transition`` spending ``output_id``."""
    return canonical_bytes(
        {
            "action": transition,
            "output_id": output_id,
            "schema_version": RECORD_SCHEMA_VERSION,
        }
    )


def open_message(record: TradeRecord, nonce: str) -> bytes:
    """Bytes the platform signs to author the genesis output of a trade."""
    return canonical_bytes(
        {
            "action": ACTION_OPEN,
            "nonce": nonce,
            "record": record.to_dict(),
            "schema_version": RECORD_SCHEMA_VERSION,
        }
    )


__all__ = [
    "Ed25519Signer",
    "Ed25519Verifier",
    "SignatureSet",
    "SignatureVerifier",
    "open_message",
    "spend_message",
]
