"""
TransferIntent model — persisted intent for non-atomic transfers.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from batchledger.models.enums import TransferStatus


class TransferIntentQuerySet(models.QuerySet):

    def outstanding(self):
        """Intents whose source was debited but destination never credited."""
        return self.filter(status=TransferStatus.DEBITED)


class TransferIntent(models.Model):
    """
    Intent record written before a transfer runs outside a single DB transaction.

    LIFECYCLE:

        PENDING ──debit ok──► DEBITED ──credit ok──► COMPLETED
           │                     │
           │ debit failed        │ credit failed: stays DEBITED,
           ▼                     │ PartialTransferError raised,
         FAILED                  ▼ resolved by reconciliation
                              (resume) ──► COMPLETED

    Only used when BATCHLEDGER['ATOMIC_TRANSFERS'] is False. In atomic mode
    the pair of transfer transactions is the whole record.
    """

    source = models.ForeignKey(
        'batchledger.Warehouse',
        on_delete=models.CASCADE,
        related_name='outgoing_transfers',
        verbose_name=_('Source'),
    )
    destination = models.ForeignKey(
        'batchledger.Warehouse',
        on_delete=models.CASCADE,
        related_name='incoming_transfers',
        verbose_name=_('Destination'),
    )
    code = models.CharField(max_length=50, verbose_name=_('Batch code'))
    product_name = models.CharField(max_length=200, verbose_name=_('Product name'))
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    correlation_id = models.CharField(max_length=255, db_index=True, verbose_name=_('Correlation id'))

    status = models.CharField(
        max_length=20,
        choices=TransferStatus.choices,
        default=TransferStatus.PENDING,
        db_index=True,
        verbose_name=_('Status'),
    )
    error = models.TextField(blank=True, default='', verbose_name=_('Last error'))

    # Snapshot needed to credit the destination later
    payload = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    resolved_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Resolved at'))

    objects = TransferIntentQuerySet.as_manager()

    class Meta:
        verbose_name = _('Transfer intent')
        verbose_name_plural = _('Transfer intents')
        ordering = ['created_at']

    @property
    def is_outstanding(self) -> bool:
        return self.status == TransferStatus.DEBITED

    def __str__(self) -> str:
        return (
            f"{self.quantity}x {self.code} "
            f"{self.source.code} → {self.destination.code} ({self.status})"
        )
