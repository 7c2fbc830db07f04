from __future__ import annotations

import json
from pathlib import Path

import pytest

from tradeline.core.continuation import RecordOutput, encode_continuation
from tradeline.report import lineage_to_dict, render_markdown, write_reports


def _lineage(genesis: RecordOutput) -> list[RecordOutput]:
    agreed = encode_continuation(genesis.record.with_state("AGREED"), genesis)
    return [genesis, agreed]


def test_lineage_to_dict(genesis: RecordOutput) -> None:
    payload = lineage_to_dict(_lineage(genesis))
    assert payload["trade_id"] == genesis.trade_id
    assert payload["state"] == "AGREED"
    assert payload["terminal"] is False
    assert [o["sequence"] for o in payload["outputs"]] == [0, 1]


def test_render_markdown(genesis: RecordOutput) -> None:
    markdown = render_markdown(_lineage(genesis))
    assert f"## Trade {genesis.trade_id}" in markdown
    assert "- State: **AGREED**" in markdown
    assert "- Next: execute" in markdown
    assert "| 0 |" in markdown and "| yes |" in markdown


def test_render_markdown_terminal(genesis: RecordOutput) -> None:
    settled = encode_continuation(genesis.record.with_state("SETTLED"), genesis)
    assert "terminal" in render_markdown([genesis, settled])


def test_empty_lineage_rejected() -> None:
    with pytest.raises(ValueError):
        render_markdown([])


def test_write_reports(tmp_path: Path, genesis: RecordOutput) -> None:
    json_path = tmp_path / "r" / "trade.json"
    md_path = tmp_path / "r" / "trade.md"
    write_reports(_lineage(genesis), json_path=json_path, md_path=md_path)
    assert json.loads(json_path.read_text(encoding="utf-8"))["current_output_id"]
    assert md_path.read_text(encoding="utf-8").startswith("## Trade")
