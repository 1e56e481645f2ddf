from __future__ import annotations

from typing import Iterable

from .models import Product


class ProductAccumulator:
    """Insertion-ordered product set keyed by link. First seen wins.

    Not thread-safe; owned by the single driving loop.
    """

    def __init__(self, max_items: int | None = None) -> None:
        self.max_items = max_items
        self._products: dict[str, Product] = {}

    def merge(self, batch: Iterable[Product]) -> int:
        added = 0
        for product in batch:
            if self.max_items is not None and len(self._products) >= self.max_items:
                break
            link = product.link
            if not link or link in self._products:
                continue
            self._products[link] = product
            added += 1
        return added

    def size(self) -> int:
        return len(self._products)

    def drain(self, limit: int | None = None) -> list[Product]:
        products = list(self._products.values())
        if limit is None:
            return products
        return products[: max(0, limit)]
