"""
Warehouse model — Where batches are held.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from batchledger.models.enums import WarehouseCategory, WarehouseStatus


class WarehouseQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status=WarehouseStatus.ACTIVE)


class Warehouse(models.Model):
    """
    A physical place that holds batches.

    Warehouses are created by an operator with an externally chosen code,
    which never changes afterwards. Deleting a warehouse cascades to its
    batches, its transaction history and its low-stock settings.

    total_items is a cache: the sum of positive batch quantities, refreshed
    by the batch store whenever one of its batches changes.

    Examples:
        Warehouse.objects.create(code='W1', name='Main', category=WarehouseCategory.STORAGE)
        Warehouse.objects.create(code='SHOP', name='Front Shop', category=WarehouseCategory.CUSTOMER)
    """

    code = models.CharField(
        unique=True,
        max_length=50,
        verbose_name=_('Code'),
        help_text=_('Unique identifier (e.g. W1, main-store). Immutable.'),
    )
    name = models.CharField(
        max_length=100,
        verbose_name=_('Name'),
    )
    location = models.CharField(
        max_length=200,
        blank=True,
        default='',
        verbose_name=_('Location'),
    )
    category = models.CharField(
        max_length=20,
        choices=WarehouseCategory.choices,
        default=WarehouseCategory.STORAGE,
        verbose_name=_('Category'),
    )
    status = models.CharField(
        max_length=20,
        choices=WarehouseStatus.choices,
        default=WarehouseStatus.ACTIVE,
        verbose_name=_('Status'),
    )
    total_items = models.PositiveIntegerField(
        default=0,
        editable=False,
        verbose_name=_('Total items'),
        help_text=_('Sum of positive batch quantities. Maintained by the ledger.'),
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        verbose_name=_('Metadata'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = WarehouseQuerySet.as_manager()

    class Meta:
        verbose_name = _('Warehouse')
        verbose_name_plural = _('Warehouses')
        ordering = ['code']

    def save(self, *args, **kwargs):
        if self.pk:
            stored = type(self).objects.filter(pk=self.pk).values_list('code', flat=True).first()
            if stored is not None and stored != self.code:
                raise ValueError("Warehouse code is immutable once created.")
        super().save(*args, **kwargs)

    @property
    def is_active(self) -> bool:
        return self.status == WarehouseStatus.ACTIVE

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"
