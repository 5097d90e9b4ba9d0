"""Execution modes."""

from arbsentry.modes.base import ExecutionMode
from arbsentry.modes.shadow import ShadowMode

__all__ = [
    "ExecutionMode",
    "ShadowMode",
]
