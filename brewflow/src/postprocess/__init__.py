"""
Post-processing of DataBrew job output.

Moves output objects from the job's temporary prefix into their final
partitioned location.
"""

from brewflow.src.postprocess.relocator import OutputRelocator, destination_key

__all__ = ["OutputRelocator", "destination_key"]
