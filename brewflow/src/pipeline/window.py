"""
Execution window calculation.

The window is the half-open interval [last checkpoint, execution start).
A missing checkpoint means the beginning of time; an inverted window means a
clock or store anomaly and is always rejected, never clamped.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from brewflow.src.errors import InvalidWindowError
from brewflow.src.models import ExecutionWindow, format_timestamp

BEGINNING_OF_TIME = datetime(1970, 1, 1, tzinfo=timezone.utc)

LAST_MODIFIED_EXPRESSION = "(AFTER :start_date) AND (BEFORE :end_date)"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def compute_window(checkpoint: Optional[datetime], now: datetime) -> ExecutionWindow:
    """
    Derive the execution window for the current run.

    Args:
        checkpoint: Last successful execution timestamp, or None on first run
        now: Time the current workflow execution began

    Returns:
        ExecutionWindow(start=checkpoint or BEGINNING_OF_TIME, end=now)

    Raises:
        InvalidWindowError: If the checkpoint is later than now
    """
    start = _as_utc(checkpoint) if checkpoint is not None else BEGINNING_OF_TIME
    end = _as_utc(now)

    if start > end:
        raise InvalidWindowError(
            f"Checkpoint {format_timestamp(start)} is later than execution "
            f"start {format_timestamp(end)} (clock skew or corrupted checkpoint)"
        )

    return ExecutionWindow(start=start, end=end)


def window_condition(window: ExecutionWindow) -> Dict[str, Any]:
    """DataBrew LastModifiedDateCondition selecting objects inside the window."""
    return {
        "Expression": LAST_MODIFIED_EXPRESSION,
        "ValuesMap": {
            ":start_date": format_timestamp(window.start),
            ":end_date": format_timestamp(window.end),
        },
    }
