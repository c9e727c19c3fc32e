"""
Product model — catalog entry referenced by batches and transactions.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Product(models.Model):
    """
    Catalog entry. The name is the effective key.

    Batches and transactions copy category and unit at write time, so a
    later catalog edit does not rewrite history.

    low_stock_threshold left empty means "use the configured default".
    """

    name = models.CharField(
        max_length=200,
        unique=True,
        verbose_name=_('Name'),
    )
    category = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Category'),
    )
    unit = models.CharField(
        max_length=30,
        blank=True,
        default='',
        verbose_name=_('Unit'),
        help_text=_('e.g. pcs, kg, bottle'),
    )
    low_stock_threshold = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_('Low-stock threshold'),
        help_text=_('Empty = system default'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name
