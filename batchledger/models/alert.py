"""
LowStockSetting model — per-warehouse low-stock threshold override.

The product's own threshold applies everywhere unless a warehouse sets a
different one here.

Usage:
    LowStockSetting.objects.create(warehouse=w1, product=syrup, threshold=25)

    from batchledger.services.alerts import LowStockEvaluator
    alerts = LowStockEvaluator.evaluate(w1)
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class LowStockSetting(models.Model):
    """
    Threshold override for one product in one warehouse.

    A product is low on stock in a warehouse when the sum of its positive
    batch quantities there is at or below the threshold.
    """

    warehouse = models.ForeignKey(
        'batchledger.Warehouse',
        on_delete=models.CASCADE,
        related_name='low_stock_settings',
        verbose_name=_('Warehouse'),
    )
    product = models.ForeignKey(
        'batchledger.Product',
        on_delete=models.CASCADE,
        related_name='low_stock_settings',
        verbose_name=_('Product'),
    )
    threshold = models.PositiveIntegerField(
        verbose_name=_('Threshold'),
        help_text=_('Alert fires when total quantity <= this value'),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_('Created at'))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_('Updated at'))

    class Meta:
        verbose_name = _('Low-stock setting')
        verbose_name_plural = _('Low-stock settings')
        constraints = [
            models.UniqueConstraint(
                fields=['warehouse', 'product'],
                name='unique_low_stock_setting_per_warehouse_product',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product} @ {self.warehouse.code} <= {self.threshold}"
