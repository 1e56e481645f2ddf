from __future__ import annotations

import logging
from dataclasses import dataclass

from .accumulator import ProductAccumulator
from .models import Product
from .stop_conditions import StopReason

logger = logging.getLogger(__name__)


class Acquirer:
    """One acquisition strategy: yields batches until it reaches a stop reason."""

    stop_reason: StopReason = StopReason.RUNNING

    async def next_batch(self, size: int) -> list[Product] | None:
        raise NotImplementedError

    def record_batch(self, added: int, size_before: int, size_after: int) -> None:
        pass

    def close(self) -> None:
        pass


@dataclass
class CollectResult:
    products: list[Product]
    stop_reason: StopReason
    batches: int


async def collect_products(acquirer: Acquirer, accumulator: ProductAccumulator) -> CollectResult:
    batches = 0
    max_items = accumulator.max_items

    try:
        while True:
            if max_items is not None and accumulator.size() >= max_items:
                logger.info("Reached MAX_ITEMS limit (%s). Stopping pagination.", max_items)
                acquirer.stop_reason = StopReason.CAPPED
                break

            batch = await acquirer.next_batch(accumulator.size())
            if batch is None:
                break

            batches += 1
            size_before = accumulator.size()
            added = accumulator.merge(batch)
            logger.info(
                "Batch %s: %s candidates, %s new, %s total.",
                batches,
                len(batch),
                added,
                accumulator.size(),
            )
            acquirer.record_batch(added, size_before, accumulator.size())
            if acquirer.stop_reason.terminal:
                break
    finally:
        acquirer.close()

    return CollectResult(
        products=accumulator.drain(max_items),
        stop_reason=acquirer.stop_reason,
        batches=batches,
    )
