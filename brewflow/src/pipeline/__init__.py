"""
Pipeline package for checkpoint-driven windowing.

This package contains:
    - CheckpointStore / CheckpointCommitter: Durable last-execution timestamps
    - compute_window: Execution window derived from the checkpoint
"""

from brewflow.src.pipeline.checkpoint import CheckpointCommitter, CheckpointStore
from brewflow.src.pipeline.window import BEGINNING_OF_TIME, compute_window, window_condition

__all__ = [
    "CheckpointStore",
    "CheckpointCommitter",
    "BEGINNING_OF_TIME",
    "compute_window",
    "window_condition",
]
