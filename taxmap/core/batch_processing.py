"""Batch processing utilities for taxmap."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Any, Callable, Iterable, TypeVar

logger = logging.getLogger(__name__)

# Type variables for generics
T = TypeVar('T')
U = TypeVar('U')

class BatchProcessor:
    """Run a function over batches of independent work units."""

    def __init__(self, batch_size: int = 1000, show_progress: bool = False, workers: int = 1):
        """Initialize a batch processor.

        Args:
            batch_size: Number of items to process in each batch
            show_progress: Whether to log progress after each batch
            workers: Number of threads; 1 processes batches in the calling thread
        """
        self.batch_size = max(1, batch_size)
        self.show_progress = show_progress
        self.workers = max(1, workers)

    @classmethod
    def from_config(cls, config, show_progress: bool = False) -> 'BatchProcessor':
        return cls(batch_size=config.batch_size, show_progress=show_progress, workers=config.workers)

    def batches(self, items: Iterable[T]) -> List[List[T]]:
        items = list(items)
        return [items[i:i + self.batch_size] for i in range(0, len(items), self.batch_size)]

    def process(self, items: Iterable[T], process_func: Callable[..., List[U]],
                *args, **kwargs) -> List[U]:
        """Process items in batches.

        Each batch writes to its own result slot, and slots are joined in input
        order, so the output does not depend on scheduling. If a batch fails,
        batches not yet started are cancelled and the error is raised.

        Args:
            items: Iterable of items to process
            process_func: Function taking a batch (list) and returning a list of results
            args, kwargs: Additional arguments for process_func

        Returns:
            Combined results from all batches
        """
        batches = self.batches(items)
        slots: List[List[U]] = [[] for _ in batches]

        if self.workers > 1 and len(batches) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [executor.submit(process_func, batch, *args, **kwargs) for batch in batches]
                try:
                    for idx, future in enumerate(futures):
                        slots[idx] = future.result()
                        self._log_progress(idx, len(batches), len(batches[idx]))
                except Exception:
                    for future in futures:
                        future.cancel()
                    raise
        else:
            for idx, batch in enumerate(batches):
                slots[idx] = process_func(batch, *args, **kwargs)
                self._log_progress(idx, len(batches), len(batch))

        results: List[U] = []
        for slot in slots:
            results.extend(slot)
        return results

    def _log_progress(self, idx: int, n_batches: int, size: int) -> None:
        if self.show_progress:
            logger.info(f"Processed batch {idx + 1}/{n_batches} ({size} items)")
