from tradeline.plugins.interfaces import FinalityHook
from tradeline.plugins.loader import run_finality_hooks

__all__ = ["FinalityHook", "run_finality_hooks"]
