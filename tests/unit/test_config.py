"""Tests for trade definition loading, extends and workspace config."""
from __future__ import annotations

from pathlib import Path

import pytest

from tradeline.config import (
    initialize_workspace,
    load_trade_definition,
    load_workspace_config,
    merge_trade_fields,
    workspace_paths,
)
from tradeline.stores.keys import LocalKeyStore

KEY_A = "aa" * 32
KEY_B = "bb" * 32
KEY_P = "cc" * 32
KEY_D = "dd" * 32


def _write(path: Path, content: str) -> Path:
    path.write_text(content.strip() + "\n", encoding="utf-8")
    return path


def _definition(tmp_path: Path, **overrides: str) -> Path:
    lines = {
        "schema_version": '"1"',
        "name": "swap-1",
        "trader_a": KEY_A,
        "trader_b": KEY_B,
        "platform": KEY_P,
        "amount": "1000",
        "asset_descriptor": "Derivative Contract",
    }
    lines.update(overrides)
    body = "\n".join(f"{key}: {value}" for key, value in lines.items() if value != "")
    return _write(tmp_path / "swap.trade.yaml", body)


class TestTradeDefinition:
    def test_load_with_hex_keys(self, tmp_path: Path) -> None:
        definition = load_trade_definition(_definition(tmp_path))
        record = definition.to_record()
        assert definition.name == "swap-1"
        assert record.trader_a == KEY_A
        assert record.platform == KEY_P
        assert record.amount == 1000
        assert record.state == "PROPOSED"

    def test_party_names_resolve_through_keystore(self, tmp_path: Path) -> None:
        keystore = LocalKeyStore(tmp_path / "keys")
        alice = keystore.create("alice")
        definition = load_trade_definition(_definition(tmp_path, trader_a="alice"))
        assert definition.to_record(keystore).trader_a == alice.public_key

    def test_party_name_without_keystore_fails(self, tmp_path: Path) -> None:
        definition = load_trade_definition(_definition(tmp_path, trader_a="alice"))
        with pytest.raises(ValueError, match="keystore"):
            definition.to_record()

    def test_float_amount_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="amount"):
            load_trade_definition(_definition(tmp_path, amount="1000.5"))

    def test_missing_party_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="trader_b"):
            load_trade_definition(_definition(tmp_path, trader_b=""))

    def test_unsupported_schema_version(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="schema_version"):
            load_trade_definition(_definition(tmp_path, schema_version='"9"'))

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="mapping"):
            load_trade_definition(_write(tmp_path / "bad.trade.yaml", "- 1\n- 2"))


class TestExtends:
    def test_child_overrides_base(self, tmp_path: Path) -> None:
        _definition(tmp_path)
        child = _write(
            tmp_path / "child.trade.yaml",
            "extends: swap.trade.yaml\nname: swap-2\namount: -50\nmetadata:\n  desk: rates",
        )
        definition = load_trade_definition(child)
        assert definition.name == "swap-2"
        assert definition.amount == -50
        assert definition.parties["trader_a"] == KEY_A
        assert definition.metadata == {"desk": "rates"}

    def test_cycle_is_detected(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.trade.yaml", "extends: b.trade.yaml")
        _write(tmp_path / "b.trade.yaml", "extends: a.trade.yaml")
        with pytest.raises(ValueError, match="circular"):
            load_trade_definition(tmp_path / "a.trade.yaml")

    def test_missing_target(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="not found"):
            load_trade_definition(_write(tmp_path / "c.trade.yaml", "extends: nowhere.yaml"))

    def test_child_cannot_replace_a_party(self, tmp_path: Path) -> None:
        _definition(tmp_path)
        child = _write(tmp_path / "child.trade.yaml", f"extends: swap.trade.yaml\ntrader_b: {KEY_D}")
        with pytest.raises(ValueError, match="trader_b"):
            load_trade_definition(child)

    def test_child_may_restate_a_party(self, tmp_path: Path) -> None:
        _definition(tmp_path)
        child = _write(tmp_path / "child.trade.yaml", f"extends: swap.trade.yaml\nplatform: {KEY_P}\namount: 5")
        assert load_trade_definition(child).parties["platform"] == KEY_P

    def test_metadata_layers_over_base(self, tmp_path: Path) -> None:
        merged = merge_trade_fields(
            {"metadata": {"desk": "rates", "book": "emea"}, "amount": 1},
            {"metadata": {"book": "apac"}, "amount": 2},
            child_path=tmp_path / "child.trade.yaml",
        )
        assert merged == {"metadata": {"desk": "rates", "book": "apac"}, "amount": 2}


class TestWorkspace:
    def test_initialize_creates_layout(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TRADELINE_STATE_DIR", raising=False)
        paths = initialize_workspace(tmp_path)
        assert paths.state == tmp_path / ".tradeline"
        assert paths.outputs.is_dir()
        assert paths.keys.is_dir()
        assert paths.config.exists()

    def test_state_dir_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRADELINE_STATE_DIR", "ledger-state")
        paths = workspace_paths(tmp_path)
        assert paths.state == tmp_path / "ledger-state"
        assert paths.outputs == tmp_path / "ledger-state" / "outputs"

    def test_config_file_and_env_log_level(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TRADELINE_STATE_DIR", raising=False)
        monkeypatch.delenv("TRADELINE_LOG_LEVEL", raising=False)
        paths = initialize_workspace(tmp_path)
        paths.config.write_text("log_level: info\nrun_finality_hooks: false\n", encoding="utf-8")

        config = load_workspace_config(paths)
        assert config.log_level == "INFO"
        assert config.run_finality_hooks is False

        monkeypatch.setenv("TRADELINE_LOG_LEVEL", "debug")
        assert load_workspace_config(paths).log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TRADELINE_STATE_DIR", raising=False)
        monkeypatch.setenv("TRADELINE_LOG_LEVEL", "chatty")
        paths = initialize_workspace(tmp_path)
        with pytest.raises(ValueError, match="TRADELINE_LOG_LEVEL"):
            load_workspace_config(paths)
