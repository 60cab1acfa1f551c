"""seqhmm work dispatch: fork-join reduction over a worker pool."""

import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, TypeVar

from tqdm import tqdm

T = TypeVar('T')
Acc = TypeVar('Acc')


class ProgressCounter:
    """
    Lock-guarded "N of M done" counter.

    Only used for reporting; the EM accumulators never go through it.
    """

    def __init__(self, total: int, desc: str = '', show: bool = False):
        self.total = total
        self.count = 0
        self._lock = threading.Lock()
        self._bar = tqdm(total=total, desc=desc, leave=False) if show else None

    def increment(self, n: int = 1):
        with self._lock:
            self.count += n
            if self._bar is not None:
                self._bar.update(n)

    def close(self):
        if self._bar is not None:
            self._bar.close()

    def __enter__(self) -> 'ProgressCounter':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def resolve_workers(n_workers: Optional[int]) -> int:
    """Map a worker request to a pool size (None or 0 = all cores)."""
    if not n_workers:
        return os.cpu_count() or 1
    if n_workers < 0:
        raise ValueError(f"n_workers must be non-negative, got {n_workers}")
    return n_workers


def partition(items: Sequence[T], n_parts: int) -> List[Sequence[T]]:
    """Split ``items`` into at most ``n_parts`` contiguous, non-empty chunks."""
    n_parts = max(1, min(n_parts, len(items)))
    size, extra = divmod(len(items), n_parts)
    chunks = []
    start = 0
    for i in range(n_parts):
        end = start + size + (1 if i < extra else 0)
        chunks.append(items[start:end])
        start = end
    return chunks


def _reduce_chunk(chunk: Sequence[T], zero: Callable[[], Acc],
                  process: Callable[[Acc, T], None]) -> Acc:
    acc = zero()
    for item in chunk:
        process(acc, item)
    return acc


def reduction(items: Sequence[T],
              zero: Callable[[], Acc],
              process: Callable[[Acc, T], None],
              combine: Callable[[Acc, Acc], Acc],
              n_workers: int = 1) -> Acc:
    """
    Fold ``items`` into one accumulator across a thread pool.

    Each worker builds a private accumulator from ``zero()`` and calls
    ``process(acc, item)`` for every item of its chunk. Worker results
    are merged with ``combine`` in completion order, so ``combine`` must
    be associative and commutative.

    Args:
        items: Items to process
        zero: Factory for the identity accumulator
        process: Folds one item into an accumulator in place
        combine: Merges the second accumulator into the first, returns it
        n_workers: Pool size; 1 runs inline in the calling thread

    Returns:
        The merged accumulator (``zero()`` if there are no items)
    """
    chunks = partition(items, n_workers) if len(items) else []

    if len(chunks) <= 1:
        return _reduce_chunk(items, zero, process)

    result = None
    with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
        futures = [executor.submit(_reduce_chunk, chunk, zero, process)
                   for chunk in chunks]
        for future in as_completed(futures):
            partial = future.result()
            result = partial if result is None else combine(result, partial)

    return result
