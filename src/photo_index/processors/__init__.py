"""Batch processors with different concurrency strategies."""

from .serial import SerialBatchProcessor, process_batch as serial_process_batch
from .multithread import ThreadPoolBatchProcessor, process_batch as multithread_process_batch

__all__ = [
    "SerialBatchProcessor",
    "ThreadPoolBatchProcessor",
    "serial_process_batch",
    "multithread_process_batch",
]
