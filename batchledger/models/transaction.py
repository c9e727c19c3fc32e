"""
Transaction model — Immutable ledger of quantity changes.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from batchledger.models.enums import TransactionType


class TransactionQuerySet(models.QuerySet):

    def in_warehouse(self, warehouse):
        return self.filter(warehouse=warehouse)

    def for_code(self, code: str):
        return self.filter(code=code)

    def transfers(self):
        return self.filter(type__in=[TransactionType.TRANSFER_OUT, TransactionType.TRANSFER_IN])

    def latest_first(self):
        return self.order_by('-timestamp', '-pk')


class Transaction(models.Model):
    """
    Immutable record of one ledger mutation.

    Rules:
    - NEVER update() or delete() an instance
    - quantity is a magnitude; type carries the direction
    - a transfer writes two records, one per warehouse, sharing code,
      quantity and correlation_id
    - product, unit and category are snapshots taken at write time

    The id is built deterministically by
    batchledger.services.transactions.build_transaction_id.
    """

    id = models.CharField(
        primary_key=True,
        max_length=255,
        verbose_name=_('Transaction id'),
    )
    type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
        verbose_name=_('Type'),
    )
    warehouse = models.ForeignKey(
        'batchledger.Warehouse',
        on_delete=models.CASCADE,
        related_name='transactions',
        verbose_name=_('Warehouse'),
    )

    product = models.ForeignKey(
        'batchledger.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Product'),
    )
    product_name = models.CharField(max_length=200, verbose_name=_('Product name'))
    code = models.CharField(max_length=50, db_index=True, verbose_name=_('Batch code'))
    quantity = models.PositiveIntegerField(
        verbose_name=_('Quantity'),
        help_text=_('Magnitude. For edits, the corrected quantity.'),
    )
    unit = models.CharField(max_length=30, blank=True, default='', verbose_name=_('Unit'))
    category = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Category'))
    expiry_date = models.DateField(null=True, blank=True, verbose_name=_('Expiry date'))

    reason = models.CharField(
        max_length=255,
        verbose_name=_('Reason'),
        help_text=_('Required. E.g. "New Supply", "Used", "Transfer"'),
    )

    # Transfers only
    counterpart_warehouse = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_('Counterpart warehouse'),
    )
    correlation_id = models.CharField(
        max_length=255,
        blank=True,
        default='',
        db_index=True,
        verbose_name=_('Correlation id'),
    )

    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    by = models.CharField(max_length=150, blank=True, default='', verbose_name=_('By'))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('User'),
    )
    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))

    objects = TransactionQuerySet.as_manager()

    class Meta:
        verbose_name = _('Transaction')
        verbose_name_plural = _('Transactions')
        ordering = ['timestamp']
        constraints = [
            models.CheckConstraint(
                condition=Q(type=TransactionType.EDIT) | Q(quantity__gt=0),
                name='transaction_movement_quantity_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['warehouse', 'timestamp'], name='batchledger_tx_wh_timestamp'),
            models.Index(fields=['warehouse', 'code'], name='batchledger_tx_wh_code'),
        ]

    def save(self, *args, **kwargs):
        # Immutability check. The pk is assigned by the caller, so _state.adding
        # tells new rows apart.
        if not self._state.adding:
            raise ValueError(
                "Transactions are immutable. "
                "To correct stock, record a new operation."
            )

        if not self.reason:
            raise ValueError("Reason is required")

        kwargs['force_insert'] = True
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion — transactions are immutable."""
        raise ValueError(
            "Transactions are immutable and cannot be deleted."
        )

    def as_record(self) -> dict:
        """Logical record shape shared with API callers."""
        return {
            'id': self.id,
            'type': self.type,
            'warehouse': self.warehouse.code,
            'product': self.product_name,
            'code': self.code,
            'quantity': self.quantity,
            'unit': self.unit,
            'expiryDate': self.expiry_date.isoformat() if self.expiry_date else None,
            'reason': self.reason,
            'category': self.category,
            'by': self.by,
            'timestamp': self.timestamp,
            'counterpartWarehouse': self.counterpart_warehouse or None,
            'correlationId': self.correlation_id or None,
        }

    def __str__(self) -> str:
        return f"{self.type} {self.quantity} | {self.reason}"
