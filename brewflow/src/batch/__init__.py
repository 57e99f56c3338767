"""
DataBrew Job Module

This module provides the JobRunner class for submitting a window-scoped
DataBrew job and polling it to a terminal state.
"""

from .job_runner import IN_FLIGHT_STATES, JobRunner, PollAction, next_action

__all__ = ["JobRunner", "PollAction", "next_action", "IN_FLIGHT_STATES"]
