from .accumulator import ProductAccumulator
from .models import Product, build_product, compute_discount
from .pipeline import Acquirer, CollectResult, collect_products
from .storage import shard_stores, split_evenly
from .stop_conditions import StopReason

__all__ = [
    "Acquirer",
    "CollectResult",
    "Product",
    "ProductAccumulator",
    "StopReason",
    "build_product",
    "collect_products",
    "compute_discount",
    "shard_stores",
    "split_evenly",
]
