import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into consecutive groups of ``size``, the last may be shorter."""
    if size < 1:
        raise ValueError(f"Batch size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class BatchScheduler:
    """
    Sweep a sequence in fixed-size rounds.

    Every item of a round runs concurrently, and the next round only starts
    once all of them settled, so at most ``batch_size`` workers are ever in
    flight. Results come back in input order whatever the completion order.
    """

    def __init__(self, batch_size: int):
        if batch_size < 1:
            raise ValueError(f"Batch size must be >= 1, got {batch_size}")
        self.batch_size = batch_size

    async def run(
        self,
        items: Sequence[T],
        worker: Callable[[T], Awaitable[R]],
        on_batch_done: Optional[Callable[[int, int], None]] = None
    ) -> List[Optional[R]]:
        results: List[Optional[R]] = [None] * len(items)
        batches = chunk(items, self.batch_size)

        offset = 0
        for number, batch in enumerate(batches, start=1):
            # Let the whole round settle even if one worker blows up
            outcomes = await asyncio.gather(
                *(worker(item) for item in batch),
                return_exceptions=True
            )
            for position, outcome in enumerate(outcomes):
                if isinstance(outcome, BaseException):
                    raise outcome
                results[offset + position] = outcome
            offset += len(batch)

            logger.debug(f"Batch {number}/{len(batches)} settled")
            if on_batch_done:
                on_batch_done(number, len(batches))

        return results
