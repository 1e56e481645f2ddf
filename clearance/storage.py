from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence, TypeVar

from .models import Product

logger = logging.getLogger(__name__)

INDEX_FILENAME = "products-index.json"

T = TypeVar("T")


class StoreConfigError(RuntimeError):
    pass


def split_evenly(items: Sequence[T], total_shards: int) -> list[list[T]]:
    if total_shards <= 0:
        return [list(items)]
    base_size, remainder = divmod(len(items), total_shards)
    shards: list[list[T]] = []
    start = 0
    for index in range(total_shards):
        size = base_size + (1 if index < remainder else 0)
        shards.append(list(items[start : start + size]))
        start += size
    return shards


def shard_stores(stores: Sequence[T], shard_index: int, total_shards: int) -> list[T]:
    """Return the 1-based ``shard_index`` slice, or an empty list when out of range."""
    shards = split_evenly(stores, total_shards)
    if shard_index < 1 or shard_index > len(shards):
        return []
    return shards[shard_index - 1]
INDEX_FILENAME = "products-index.json"


def load_stores(path: Path) -> list[dict]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise StoreConfigError(f"Store list not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise StoreConfigError(f"Store list is not valid JSON: {path}: {exc}") from exc

    if not isinstance(raw, list) or not raw:
        raise StoreConfigError("No stores configured")

    stores: list[dict] = []
    for item in raw:
        if not isinstance(item, dict) or not str(item.get("storeKey") or "").strip():
            raise StoreConfigError(f"Store entry without a storeKey in {path}: {item!r}")
        stores.append(item)
    return stores


def _write_json(path: Path, payload: dict) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def write_outputs(
    products: Sequence[Product],
    stores: Sequence[dict],
    *,
    source: str,
    updated_at: str,
    output_dir: Path,
) -> list[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    serialized = [product.to_dict() for product in products]
    written: list[Path] = []

    for store in stores:
        file_path = output_dir / f"{store['storeKey']}.json"
        _write_json(
            file_path,
            {"store": store, "updatedAt": updated_at, "source": source, "products": serialized},
        )
        logger.info("Wrote %s products for store %s to %s", len(serialized), store["storeKey"], file_path)
        written.append(file_path)

    index_path = output_dir / INDEX_FILENAME
    _write_json(index_path, {"updatedAt": updated_at, "source": source, "products": serialized})
    logger.info("Wrote product index with %s products to %s", len(serialized), index_path)
    written.append(index_path)
    return written
