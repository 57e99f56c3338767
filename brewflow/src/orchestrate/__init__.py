"""
Orchestration module for incremental dataset processing.

This module coordinates the full workflow:
1. Read checkpoint and compute the execution window
2. Run the DataBrew job scoped to the window
3. Relocate output and advance the checkpoint
"""

from brewflow.src.orchestrate.workflow_orchestrator import WorkflowOrchestrator

__all__ = ["WorkflowOrchestrator"]
