"""
Batch model — a quantity of one product held in one warehouse.

A batch is identified by (warehouse, code). The code is chosen by the
operator at stock-in time and the same code may exist in several
warehouses after transfers.

Usage:
    ledger.stock_in(50, 'Vanilla Syrup', 'W1', code='B001', reason='New Supply')
    Batch.objects.get(warehouse__code='W1', code='B001').quantity  # 50
"""

from datetime import date

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class BatchQuerySet(models.QuerySet):
    """Custom QuerySet for Batch with convenience filters."""

    def held(self):
        """Batches with stock on hand. Empty batches are kept as records."""
        return self.filter(quantity__gt=0)

    def empty(self):
        return self.filter(quantity=0)

    def in_warehouse(self, warehouse):
        return self.filter(warehouse=warehouse)

    def for_product(self, product):
        """Filter by product instance or product name."""
        name = getattr(product, 'name', product)
        return self.filter(product_name=name)

    def expiring_before(self, day):
        """Batches expiring on or before the given date."""
        return self.filter(expiry_date__lte=day, expiry_date__isnull=False)

    def expired(self):
        """Batches past their expiry date."""
        return self.filter(expiry_date__lt=date.today())


class Batch(models.Model):
    """
    Current-state row of the ledger.

    Rules:
    - quantity is never negative (enforced here and by a DB constraint)
    - a batch that reaches zero is kept; use purge_empty() to remove it
    - product name, unit and category are snapshots taken at creation
    - quantity only changes through the ledger services, which also append
      a Transaction for every change
    """

    warehouse = models.ForeignKey(
        'batchledger.Warehouse',
        on_delete=models.CASCADE,
        related_name='batches',
        verbose_name=_('Warehouse'),
    )
    code = models.CharField(
        max_length=50,
        verbose_name=_('Batch code'),
        help_text=_('Unique within the warehouse. Chosen at stock-in.'),
    )

    # Product reference plus snapshot
    product = models.ForeignKey(
        'batchledger.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='batches',
        verbose_name=_('Product'),
    )
    product_name = models.CharField(max_length=200, verbose_name=_('Product name'))
    unit = models.CharField(max_length=30, blank=True, default='', verbose_name=_('Unit'))
    category = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Category'))

    quantity = models.PositiveIntegerField(default=0, verbose_name=_('Quantity'))
    expiry_date = models.DateField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_('Expiry date'),
    )

    reason = models.CharField(
        max_length=255,
        blank=True,
        default='',
        verbose_name=_('Reason'),
        help_text=_('Reason of the event that created the batch'),
    )
    created_by = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Created by'))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_('Created at'))
    updated_at = models.DateTimeField(auto_now=True)

    objects = BatchQuerySet.as_manager()

    class Meta:
        verbose_name = _('Batch')
        verbose_name_plural = _('Batches')
        ordering = ['warehouse', 'code']
        constraints = [
            models.UniqueConstraint(
                fields=['warehouse', 'code'],
                name='unique_batch_code_per_warehouse',
            ),
            models.CheckConstraint(
                condition=Q(quantity__gte=0),
                name='batch_quantity_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['warehouse', 'product_name'], name='batchledger_batch_wh_product'),
        ]

    @property
    def is_expired(self) -> bool:
        if self.expiry_date is None:
            return False
        return date.today() > self.expiry_date

    def as_record(self) -> dict:
        """Logical record shape shared with API callers."""
        return {
            'code': self.code,
            'product': self.product_name,
            'productRef': self.product_id,
            'quantity': self.quantity,
            'unit': self.unit,
            'expiryDate': self.expiry_date.isoformat() if self.expiry_date else None,
            'reason': self.reason,
            'category': self.category,
            'createdBy': self.created_by,
            'createdAt': self.created_at,
        }

    def __str__(self) -> str:
        expiry = f" (exp:{self.expiry_date})" if self.expiry_date else ""
        return f"{self.product_name} [{self.code}]{expiry}: {self.quantity}"
