"""
Low-stock evaluation — derived from current batches, never stored.

Usage:
    from batchledger.services.alerts import LowStockEvaluator

    # After stock changes, or periodically (cron, celery beat)
    alerts = LowStockEvaluator.evaluate()          # every warehouse
    alerts = LowStockEvaluator.evaluate('W1')      # one warehouse
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass

from batchledger.conf import batchledger_settings
from batchledger.models.batch import Batch
from batchledger.models.product import Product
from batchledger.services.registry import Registry

logger = logging.getLogger('batchledger')


@dataclass(frozen=True)
class LowStockAlert:
    """One batch of a product whose total in the warehouse is at or below threshold."""

    warehouse: str
    warehouse_name: str
    product: str
    code: str
    quantity: int       # this batch
    total: int          # all held batches of the product in the warehouse
    threshold: int


def coerce_threshold(value, default: int) -> int:
    """Numeric thresholds pass through; anything else falls back to default."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return default
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return default


class LowStockEvaluator:
    """Read-only, recomputed on every call."""

    @classmethod
    def evaluate(cls, warehouse=None) -> list[LowStockAlert]:
        """
        Alerts for one warehouse, or all of them.

        Batches with quantity > 0 are grouped by product name and summed.
        When the sum is at or below the threshold, one alert is emitted
        per contributing batch (not per product), so each physical lot
        behind the shortage is visible. Use low_stock_products() for one
        entry per product.

        Threshold precedence: warehouse override, product threshold,
        DEFAULT_LOW_STOCK_THRESHOLD.

        Returns:
            Alerts ordered by warehouse code, product name, batch code.
        """
        if warehouse is not None:
            warehouses = [Registry.get_warehouse(warehouse)]
        else:
            warehouses = list(Registry.list_warehouses())

        default = coerce_threshold(batchledger_settings.DEFAULT_LOW_STOCK_THRESHOLD, 10)
        product_thresholds = {
            name: coerce_threshold(threshold, default)
            for name, threshold in Product.objects.values_list('name', 'low_stock_threshold')
        }

        alerts = []
        for wh in warehouses:
            overrides = Registry.thresholds_for(wh)
            groups = defaultdict(list)
            for batch in Batch.objects.in_warehouse(wh).held().order_by('product_name', 'code'):
                groups[batch.product_name].append(batch)

            for product_name, batches in groups.items():
                total = sum(b.quantity for b in batches)
                if product_name in overrides:
                    threshold = coerce_threshold(overrides[product_name], default)
                else:
                    threshold = product_thresholds.get(product_name, default)

                if total > threshold:
                    continue

                logger.warning(
                    "ledger.low_stock",
                    extra={
                        "warehouse": wh.code,
                        "product": product_name,
                        "total": total,
                        "threshold": threshold,
                        "batches": len(batches),
                    },
                )
                alerts.extend(
                    LowStockAlert(
                        warehouse=wh.code,
                        warehouse_name=wh.name,
                        product=product_name,
                        code=b.code,
                        quantity=b.quantity,
                        total=total,
                        threshold=threshold,
                    )
                    for b in batches
                )

        return alerts

    @classmethod
    def low_stock_products(cls, warehouse=None) -> list[tuple[str, str, int, int]]:
        """
        One entry per (warehouse, product) in shortage.

        Returns:
            List of (warehouse_code, product_name, total, threshold) tuples.
        """
        seen = {}
        for alert in cls.evaluate(warehouse):
            seen.setdefault(
                (alert.warehouse, alert.product),
                (alert.warehouse, alert.product, alert.total, alert.threshold),
            )
        return list(seen.values())
