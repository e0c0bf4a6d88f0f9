"""Serial processor implementation - processes objects one by one."""

from typing import List

from ..core.models import ItemResult
from ..core.protocols import BatchProcessor, ItemWorker


def process_batch(batch: List[str], worker: ItemWorker) -> List[ItemResult]:
    """
    Processes a batch of keys serially, one by one, in the current thread.

    Args:
        batch: Object keys to process.
        worker: Callable turning one key into its settled ``ItemResult``.

    Returns:
        A list of ``ItemResult`` objects in batch order.
    """
    return [worker(key) for key in batch]


class SerialBatchProcessor(BatchProcessor):
    """Serial batch processor implementation."""

    def process_batch(self, batch: List[str], worker: ItemWorker) -> List[ItemResult]:
        return process_batch(batch, worker)
