"""Local keystore for demo and test tooling; real custody lives elsewhere."""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from tradeline.core.signing import Ed25519Signer

_KEY_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class KeyStore(Protocol):
    def create(self, name: str) -> Ed25519Signer: ...
    def load(self, name: str) -> Ed25519Signer: ...
    def list_names(self) -> list[str]: ...


class LocalKeyStore:
    """Hex-encoded Ed25519 seeds, one ``<name>.key`` file each."""

    def __init__(self, keys_dir: Path) -> None:
        self._keys_dir = keys_dir

    @property
    def keys_dir(self) -> Path:
        return self._keys_dir

    def _path(self, name: str) -> Path:
        if not _KEY_NAME_RE.match(name):
            raise ValueError(f"Invalid key name: {name!r}")
        return self._keys_dir / f"{name}.key"

    def create(self, name: str) -> Ed25519Signer:
        path = self._path(name)
        if path.exists():
            raise FileExistsError(f"Key already exists: {name}")
        self._keys_dir.mkdir(parents=True, exist_ok=True)
        signer = Ed25519Signer.generate()
        path.write_text(signer.seed_hex() + "\n", encoding="utf-8")
        os.chmod(path, 0o600)
        return signer

    def load(self, name: str) -> Ed25519Signer:
        path = self._path(name)
        if not path.exists():
            raise FileNotFoundError(f"Key not found: {name}")
        return Ed25519Signer.from_hex(path.read_text(encoding="utf-8"))

    def list_names(self) -> list[str]:
        if not self._keys_dir.exists():
            return []
        return sorted(p.stem for p in self._keys_dir.glob("*.key") if p.is_file())


__all__ = ["KeyStore", "LocalKeyStore"]
