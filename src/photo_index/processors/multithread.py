"""Multithreaded processor implementation - uses a bounded thread pool per batch."""

from typing import List
from concurrent.futures import ThreadPoolExecutor, as_completed

from ..core.models import ItemOutcome, ItemResult
from ..core.protocols import BatchProcessor, ItemWorker
from ..core.tags import folder_name_for_key


def process_batch(
    batch: List[str], worker: ItemWorker, max_workers: int = 5
) -> List[ItemResult]:
    """
    Process a batch of keys on a thread pool and wait for every item.

    The executor is shut down before returning, so the batch is a join point:
    no task from this batch is still running when the next one starts.
    Results are in completion order.

    Args:
        batch: Object keys to process
        worker: Callable turning one key into its settled ``ItemResult``
        max_workers: Upper bound on threads; never more than the batch size

    Returns:
        List of item results
    """
    if not batch:
        return []

    results: List[ItemResult] = []
    with ThreadPoolExecutor(max_workers=min(max_workers, len(batch))) as executor:
        future_to_key = {executor.submit(worker, key): key for key in batch}

        for future in as_completed(future_to_key):
            try:
                results.append(future.result())
            except Exception as e:
                key = future_to_key[future]
                results.append(
                    ItemResult(
                        key=key,
                        folder_name=folder_name_for_key(key),
                        outcome=ItemOutcome.ERROR,
                        error=str(e),
                    )
                )

    return results


class ThreadPoolBatchProcessor(BatchProcessor):
    """Batch processor running items with bounded parallelism."""

    def __init__(self, max_workers: int = 5):
        self._max_workers = max_workers

    def process_batch(self, batch: List[str], worker: ItemWorker) -> List[ItemResult]:
        return process_batch(batch, worker, self._max_workers)
