"""Trade definitions and workspace settings loaded from YAML."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tradeline.constants import (
    CONFIG_FILE,
    ENV_LOG_LEVEL,
    ENV_STATE_DIR,
    KEYS_DIR,
    OUTPUTS_DIR,
    REPORTS_DIR,
    SIGNER_ROLES,
    SPENT_DIR,
    STATE_DIR,
    TRADE_DEFINITION_SCHEMA_VERSION,
)
from tradeline.core.record import TradeRecord, is_public_key_hex
from tradeline.stores.keys import KeyStore


@dataclass(slots=True)
class TradeDefinition:
    name: str
    parties: dict[str, str]
    amount: int
    asset_descriptor: str
    source_path: Path
    schema_version: str = TRADE_DEFINITION_SCHEMA_VERSION
    metadata: dict[str, Any] = field(default_factory=dict)

    def resolve_party(self, role: str, keystore: KeyStore | None = None) -> str:
        """Return the public key for ``role``; non-hex values name a keystore entry."""
        value = self.parties[role]
        if is_public_key_hex(value):
            return value
        if keystore is None:
            raise ValueError(f"Party `{role}` refers to key {value!r} but no keystore is available")
        return keystore.load(value).public_key

    def to_record(self, keystore: KeyStore | None = None) -> TradeRecord:
        return TradeRecord(
            trader_a=self.resolve_party("trader_a", keystore),
            trader_b=self.resolve_party("trader_b", keystore),
            platform=self.resolve_party("platform", keystore),
            amount=self.amount,
            asset_descriptor=self.asset_descriptor,
        )


@dataclass(slots=True)
class WorkspacePaths:
    root: Path
    state: Path
    outputs: Path
    spent: Path
    keys: Path
    reports: Path
    config: Path


@dataclass(slots=True)
class WorkspaceConfig:
    log_level: str = "WARNING"
    run_finality_hooks: bool = True


_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _load_yaml(path: Path) -> dict[str, Any]:
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"YAML file must be a mapping: {path}")
    return loaded


def merge_trade_fields(base: dict[str, Any], child: dict[str, Any], *, child_path: Path) -> dict[str, Any]:
    """Layer a derived trade over its base.

    Terms such as ``name``, ``amount`` or ``asset_descriptor`` override the
    base. ``metadata`` keys are added on top of the base metadata. Parties are
    inherited: a derived trade may restate a party but never replace one.
    """
    merged = dict(base)
    for key, value in child.items():
        if key in SIGNER_ROLES and key in base and value != base[key]:
            raise ValueError(
                f"{child_path}: `{key}` is fixed by the extended trade and cannot be changed to {value!r}"
            )
        if key == "metadata" and isinstance(base.get(key), dict) and isinstance(value, dict):
            merged[key] = {**base[key], **value}
        else:
            merged[key] = value
    return merged


def _resolve_extends(data: dict[str, Any], source_path: Path, chain: tuple[Path, ...] = ()) -> dict[str, Any]:
    extends_raw = data.pop("extends", None)
    if extends_raw is None:
        return data

    chain = (*chain, source_path)
    base_path = (source_path.parent / str(extends_raw)).resolve()
    if base_path in chain:
        names = " -> ".join(path.name for path in (*chain, base_path))
        raise ValueError(f"Trade definitions extend each other in a circular chain: {names}")
    if not base_path.exists():
        raise ValueError(f"extends target not found: {base_path}")

    base_data = _resolve_extends(_load_yaml(base_path), base_path, chain)
    return merge_trade_fields(base_data, data, child_path=source_path)


def parse_trade_definition(data: dict[str, Any], *, source_path: Path) -> TradeDefinition:
    schema_version = str(data.get("schema_version", TRADE_DEFINITION_SCHEMA_VERSION))
    if schema_version != TRADE_DEFINITION_SCHEMA_VERSION:
        raise ValueError(
            f"Unsupported trade schema_version '{schema_version}'. "
            f"Expected '{TRADE_DEFINITION_SCHEMA_VERSION}'."
        )

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Trade definition requires non-empty `name`")

    parties: dict[str, str] = {}
    for role in SIGNER_ROLES:
        value = data.get(role)
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Trade definition requires `{role}` (public key hex or key name)")
        parties[role] = value.strip()

    amount = data.get("amount")
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ValueError("`amount` must be an integer")

    asset_descriptor = data.get("asset_descriptor")
    if not isinstance(asset_descriptor, str):
        raise ValueError("`asset_descriptor` must be a string")

    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError("`metadata` must be a mapping")

    return TradeDefinition(
        name=name.strip(),
        parties=parties,
        amount=amount,
        asset_descriptor=asset_descriptor,
        source_path=source_path,
        schema_version=schema_version,
        metadata=metadata,
    )


def load_trade_definition(path: Path) -> TradeDefinition:
    data = _load_yaml(path)
    data = _resolve_extends(data, path.resolve())
    return parse_trade_definition(data, source_path=path.resolve())


def workspace_paths(project_root: Path) -> WorkspacePaths:
    override = os.environ.get(ENV_STATE_DIR)
    if override:
        state = Path(override)
        if not state.is_absolute():
            state = project_root / state
        return WorkspacePaths(
            root=project_root,
            state=state,
            outputs=state / OUTPUTS_DIR.name,
            spent=state / SPENT_DIR.name,
            keys=state / KEYS_DIR.name,
            reports=state / REPORTS_DIR.name,
            config=state / CONFIG_FILE.name,
        )
    return WorkspacePaths(
        root=project_root,
        state=project_root / STATE_DIR,
        outputs=project_root / OUTPUTS_DIR,
        spent=project_root / SPENT_DIR,
        keys=project_root / KEYS_DIR,
        reports=project_root / REPORTS_DIR,
        config=project_root / CONFIG_FILE,
    )


def _log_level(value: Any, source: str) -> str:
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"{source}: unknown log level {value!r} (expected one of {', '.join(_LOG_LEVELS)})")
    return level


def load_workspace_config(paths: WorkspacePaths) -> WorkspaceConfig:
    config = WorkspaceConfig()
    if paths.config.exists():
        raw = _load_yaml(paths.config)
        if "log_level" in raw:
            config.log_level = _log_level(raw["log_level"], str(paths.config))
        if "run_finality_hooks" in raw:
            config.run_finality_hooks = bool(raw["run_finality_hooks"])
    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        config.log_level = _log_level(env_level, ENV_LOG_LEVEL)
    return config


def initialize_workspace(project_root: Path) -> WorkspacePaths:
    paths = workspace_paths(project_root)
    for directory in (paths.state, paths.outputs, paths.spent, paths.keys, paths.reports):
        directory.mkdir(parents=True, exist_ok=True)
    if not paths.config.exists():
        defaults = WorkspaceConfig()
        paths.config.write_text(
            yaml.safe_dump(
                {
                    "log_level": defaults.log_level,
                    "run_finality_hooks": defaults.run_finality_hooks,
                },
                sort_keys=True,
            ),
            encoding="utf-8",
        )
    return paths


__all__ = [
    "TradeDefinition",
    "WorkspaceConfig",
    "WorkspacePaths",
    "initialize_workspace",
    "load_trade_definition",
    "load_workspace_config",
    "merge_trade_fields",
    "parse_trade_definition",
    "workspace_paths",
]
