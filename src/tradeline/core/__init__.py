"""Tradeline core: the trade record, transition rules and the wire encoding.

Everything here is a pure, synchronous function of its inputs. Ordering of
competing spends, storage and key custody live outside this package, which
has no dependency on typer, PyYAML or the filesystem.
"""
from __future__ import annotations
