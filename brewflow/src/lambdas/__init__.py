"""
Lambda functions for Step Functions orchestration.

These Lambda functions expose the pipeline stages at the JSON boundaries of
an externally scheduled state machine.

Functions:
- prepare_window: Read checkpoint and compute the execution window
- relocate_output: Move DataBrew output from the temporary prefix
- commit_checkpoint: Advance the checkpoint after full success
- run_pipeline: Run one complete cycle in a single invocation
"""

from brewflow.src.lambdas.prepare_window import handler as prepare_window_handler
from brewflow.src.lambdas.relocate_output import handler as relocate_output_handler
from brewflow.src.lambdas.commit_checkpoint import handler as commit_checkpoint_handler
from brewflow.src.lambdas.run_pipeline import handler as run_pipeline_handler

__all__ = [
    "prepare_window_handler",
    "relocate_output_handler",
    "commit_checkpoint_handler",
    "run_pipeline_handler",
]
