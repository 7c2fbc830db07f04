"""Shared workspace wiring for CLI commands."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from tradeline.config import WorkspaceConfig, WorkspacePaths, load_workspace_config, workspace_paths
from tradeline.constants import SIGNER_ROLES
from tradeline.ledger import Ledger
from tradeline.stores.keys import LocalKeyStore
from tradeline.stores.records import LocalRecordStore

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass(slots=True)
class Workspace:
    paths: WorkspacePaths
    config: WorkspaceConfig
    ledger: Ledger
    keystore: LocalKeyStore


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)
    logging.getLogger("tradeline").setLevel(level.upper())


def open_workspace(project_root: Path) -> Workspace:
    paths = workspace_paths(project_root)
    if not paths.state.is_dir():
        raise FileNotFoundError(
            f"No tradeline workspace at {paths.state}. Run `tradeline init` first."
        )
    config = load_workspace_config(paths)
    store = LocalRecordStore(outputs_dir=paths.outputs, spent_dir=paths.spent)
    return Workspace(
        paths=paths,
        config=config,
        ledger=Ledger(store=store),
        keystore=LocalKeyStore(paths.keys),
    )


def parse_role_pairs(pairs: list[str] | None, *, option: str) -> dict[str, str]:
    """Parse repeated ``role=value`` options into a mapping."""
    parsed: dict[str, str] = {}
    for pair in pairs or []:
        role, sep, value = pair.partition("=")
        role = role.strip()
        if not sep or not value.strip():
            raise ValueError(f"{option} expects role=value, got {pair!r}")
        if role not in SIGNER_ROLES:
            raise ValueError(f"{option}: unknown role {role!r} (expected one of {', '.join(SIGNER_ROLES)})")
        if role in parsed:
            raise ValueError(f"{option}: role {role!r} given more than once")
        parsed[role] = value.strip()
    return parsed
