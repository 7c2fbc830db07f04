from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from tradeline.constants import RECORD_SCHEMA_VERSION
from tradeline.core.continuation import RecordOutput
from tradeline.core.record import is_terminal
from tradeline.core.transitions import available_transitions


def _short(key: str) -> str:
    return f"{key[:8]}…{key[-4:]}"


def lineage_to_dict(lineage: list[RecordOutput]) -> dict[str, Any]:
    if not lineage:
        raise ValueError("Lineage must contain at least the genesis output")
    current = lineage[-1]
    return {
        "schema_version": RECORD_SCHEMA_VERSION,
        "trade_id": current.trade_id,
        "current_output_id": current.output_id,
        "state": current.record.state,
        "terminal": is_terminal(current.record.state),
        "outputs": [output.to_dict() for output in lineage],
    }


def render_markdown(lineage: list[RecordOutput]) -> str:
    if not lineage:
        raise ValueError("Lineage must contain at least the genesis output")
    current = lineage[-1]
    record = current.record
    lines: list[str] = []
    lines.append(f"## Trade {current.trade_id}")
    lines.append("")
    lines.append(f"- State: **{record.state}**")
    lines.append(f"- Asset: `{record.asset_descriptor}`")
    lines.append(f"- Amount: **{record.amount}**")
    lines.append(f"- Trader A: `{_short(record.trader_a)}`")
    lines.append(f"- Trader B: `{_short(record.trader_b)}`")
    lines.append(f"- Platform: `{_short(record.platform)}`")
    if is_terminal(record.state):
        lines.append("- Next: none (terminal)")
    else:
        lines.append(f"- Next: {', '.join(available_transitions(record.state))}")

    lines.append("")
    lines.append("### Outputs")
    lines.append("")
    lines.append("| Seq | Output | State | Spent |")
    lines.append("|---:|---|---|---|")
    for output in lineage:
        spent = "no" if output is current else "yes"
        lines.append(f"| {output.sequence} | `{output.output_id[:16]}` | {output.record.state} | {spent} |")
    lines.append("")
    return "\n".join(lines)


def write_reports(lineage: list[RecordOutput], json_path: Path, md_path: Path) -> None:
    json_path.parent.mkdir(parents=True, exist_ok=True)
    md_path.parent.mkdir(parents=True, exist_ok=True)
    json_path.write_text(json.dumps(lineage_to_dict(lineage), indent=2, sort_keys=True), encoding="utf-8")
    md_path.write_text(render_markdown(lineage), encoding="utf-8")


__all__ = ["lineage_to_dict", "render_markdown", "write_reports"]
