"""RecordStore protocol with in-memory and local filesystem implementations."""
from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

from tradeline.core.codec import decode_output, encode_output
from tradeline.core.continuation import RecordOutput
from tradeline.core.errors import RecordFormatError


@runtime_checkable
class RecordStore(Protocol):
    """Append-only arena of outputs plus a single-spend index."""

    def put(self, output: RecordOutput) -> None: ...
    def get(self, output_id: str) -> RecordOutput | None: ...
    def mark_spent(self, output_id: str, spent_by: str) -> bool: ...
    def spent_by(self, output_id: str) -> str | None: ...
    def list_ids(self) -> list[str]: ...


class InMemoryRecordStore:
    def __init__(self) -> None:
        self._outputs: dict[str, RecordOutput] = {}
        self._spent: dict[str, str] = {}
        self._lock = threading.Lock()

    def put(self, output: RecordOutput) -> None:
        with self._lock:
            self._outputs.setdefault(output.output_id, output)

    def get(self, output_id: str) -> RecordOutput | None:
        return self._outputs.get(output_id)

    def mark_spent(self, output_id: str, spent_by: str) -> bool:
        with self._lock:
            if output_id in self._spent:
                return False
            self._spent[output_id] = spent_by
            return True

    def spent_by(self, output_id: str) -> str | None:
        return self._spent.get(output_id)

    def list_ids(self) -> list[str]:
        return sorted(self._outputs)


class LocalRecordStore:
    """One canonical-JSON file per output under ``outputs_dir``.

    Spends are recorded with exclusive file creation under ``spent_dir`` so two
    processes sharing a workspace still cannot both spend one output.
    """

    def __init__(self, outputs_dir: Path, spent_dir: Path) -> None:
        self._outputs_dir = outputs_dir
        self._spent_dir = spent_dir

    @property
    def outputs_dir(self) -> Path:
        return self._outputs_dir

    @property
    def spent_dir(self) -> Path:
        return self._spent_dir

    def _output_path(self, output_id: str) -> Path:
        return self._outputs_dir / f"{output_id}.json"

    def _spent_path(self, output_id: str) -> Path:
        return self._spent_dir / f"{output_id}.json"

    def put(self, output: RecordOutput) -> None:
        self._outputs_dir.mkdir(parents=True, exist_ok=True)
        path = self._output_path(output.output_id)
        if path.exists():
            return
        path.write_bytes(encode_output(output))

    def get(self, output_id: str) -> RecordOutput | None:
        path = self._output_path(output_id)
        if not path.exists():
            return None
        output = decode_output(path.read_bytes())
        if output.output_id != output_id:
            raise RecordFormatError(f"Stored output does not hash to its id: {path}")
        return output

    def mark_spent(self, output_id: str, spent_by: str) -> bool:
        self._spent_dir.mkdir(parents=True, exist_ok=True)
        try:
            with self._spent_path(output_id).open("x", encoding="utf-8") as handle:
                handle.write(json.dumps({"spent_by": spent_by}, sort_keys=True))
        except FileExistsError:
            return False
        return True

    def spent_by(self, output_id: str) -> str | None:
        path = self._spent_path(output_id)
        if not path.exists():
            return None
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict) or not isinstance(raw.get("spent_by"), str):
            raise RecordFormatError(f"Malformed spend marker: {path}")
        return str(raw["spent_by"])

    def list_ids(self) -> list[str]:
        if not self._outputs_dir.exists():
            return []
        return sorted(p.stem for p in self._outputs_dir.glob("*.json") if p.is_file())


__all__ = ["InMemoryRecordStore", "LocalRecordStore", "RecordStore"]
