from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any

from tradeline.constants import FINALITY_HOOK_GROUP
from tradeline.core.continuation import RecordOutput
from tradeline.core.record import is_terminal
from tradeline.plugins.interfaces import FinalityHook

logger = logging.getLogger(__name__)


def _load_group(group: str) -> list[Any]:
    loaded: list[Any] = []
    for entry in entry_points().select(group=group):
        loaded.append(entry.load())
    return loaded


def run_finality_hooks(output: RecordOutput) -> int:
    """Notify every installed finality hook about a settled output.

    Hooks observe a trade that is already final, so a failing hook is logged
    and skipped. Returns the number of hooks that completed.
    """
    if not is_terminal(output.record.state):
        raise ValueError(f"Output {output.output_id} is not final (state {output.record.state})")
    count = 0
    for plugin in _load_group(FINALITY_HOOK_GROUP):
        name = getattr(plugin, "__name__", type(plugin).__name__)
        try:
            instance: FinalityHook
            instance = plugin() if callable(plugin) else plugin
            instance.on_finalized(output)
        except Exception as exc:
            logger.warning("Finality hook %s failed for trade %s: %s", name, output.trade_id, exc)
            continue
        count += 1
    logger.info("Ran %d finality hook(s) for trade %s", count, output.trade_id)
    return count
