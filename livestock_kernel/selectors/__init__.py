"""Selectors for the livestock kernel (read side)."""

from livestock_kernel.selectors.base import BaseSelector
from livestock_kernel.selectors.snapshot_selector import SnapshotSelector

__all__ = [
    "BaseSelector",
    "SnapshotSelector",
]
