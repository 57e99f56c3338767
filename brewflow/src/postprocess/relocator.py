"""
OutputRelocator - move DataBrew output from its temporary area.

DataBrew writes partitioned output under a temporary prefix, e.g.

    tmp/sales_part00000/year=2024/part-00000.csv

Each qualifying object is copied to its final location with the leading
partition-prefixed segments dropped, then the original is deleted:

    data/year=2024/part-00000.csv

Copy happens before delete for every object. A crash between the two leaves a
duplicate, never a loss. Objects already moved no longer appear under the
temporary prefix, so a second run over the same prefix is a no-op.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional, Tuple

from brewflow.src.errors import PartialRelocationError
from brewflow.src.interfaces import ObjectStore
from brewflow.src.models import RelocationResult, RelocationTask

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".csv"
DEFAULT_STRIP_SEGMENTS = 2
DEFAULT_MAX_WORKERS = 16


def destination_key(
    source_key: str,
    destination_prefix: str,
    strip_segments: int = DEFAULT_STRIP_SEGMENTS,
) -> Optional[str]:
    """
    Compute the final key of an output object.

    Returns:
        Destination key, or None if the key has too few path segments
    """
    parts = source_key.split("/")
    if len(parts) < strip_segments + 1:
        return None

    remainder = "/".join(parts[strip_segments:])
    prefix = destination_prefix.rstrip("/")
    return f"{prefix}/{remainder}" if prefix else remainder


class OutputRelocator:
    """
    Relocate and rename job output objects within a bucket.

    Attributes:
        object_store: ObjectStore used for list/copy/delete
        extension: Suffix of data files to move (default: ".csv")
        strip_segments: Leading key segments dropped from each key (default: 2)
        max_workers: Concurrent copy+delete pairs (default: 16)
    """

    def __init__(
        self,
        object_store: ObjectStore,
        extension: str = DEFAULT_EXTENSION,
        strip_segments: int = DEFAULT_STRIP_SEGMENTS,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.object_store = object_store
        self.extension = extension
        self.strip_segments = strip_segments
        self.max_workers = max_workers

    def plan(
        self,
        keys: Iterable[str],
        destination_prefix: str,
    ) -> Tuple[List[RelocationTask], List[str]]:
        """
        Split listed keys into relocation tasks and skipped keys.

        Args:
            keys: Keys listed under the source prefix
            destination_prefix: Final location prefix

        Returns:
            Tuple of (tasks, skipped_keys)
        """
        tasks = []
        skipped = []

        for key in keys:
            if not key or not key.endswith(self.extension):
                skipped.append(key)
                continue

            target = destination_key(key, destination_prefix, self.strip_segments)
            logger.info(f"Source key={key}, parts={key.split('/')}")
            if target is None:
                skipped.append(key)
                continue

            tasks.append(RelocationTask(source_key=key, destination_key=target))

        return tasks, skipped

    def _move(self, bucket: str, task: RelocationTask) -> RelocationTask:
        self.object_store.copy(bucket, task.source_key, task.destination_key)
        self.object_store.delete(bucket, task.source_key)
        logger.info(f"Moved {task.source_key} to {task.destination_key}.")
        return task

    def relocate(
        self,
        bucket: str,
        source_prefix: str,
        destination_prefix: str,
    ) -> RelocationResult:
        """
        Move every qualifying object under source_prefix.

        Args:
            bucket: Bucket holding both the temporary and final output
            source_prefix: Temporary output prefix written by the job
            destination_prefix: Final output prefix

        Returns:
            RelocationResult with all tasks moved

        Raises:
            InfrastructureError: If the source prefix cannot be listed
            PartialRelocationError: If any copy or delete failed
        """
        keys = list(self.object_store.list_keys(bucket, source_prefix))
        result = RelocationResult(listed=len(keys))

        if not keys:
            logger.info(f"No files found to move under s3://{bucket}/{source_prefix}")
            return result

        tasks, result.skipped = self.plan(keys, destination_prefix)
        logger.info(
            f"Relocating {len(tasks)} objects from s3://{bucket}/{source_prefix} "
            f"to {destination_prefix} ({len(result.skipped)} skipped)"
        )

        if tasks:
            workers = max(1, min(self.max_workers, len(tasks)))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    executor.submit(self._move, bucket, task): task for task in tasks
                }
                for future in as_completed(futures):
                    task = futures[future]
                    try:
                        result.moved.append(future.result())
                    except Exception as e:
                        logger.error(f"Error moving {task.source_key}: {e}")
                        result.failures[task.source_key] = str(e)

        if result.failures:
            raise PartialRelocationError(result)

        logger.info(
            f"Relocation complete: {len(result.moved)} moved, "
            f"{len(result.skipped)} skipped"
        )
        return result
