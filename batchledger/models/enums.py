"""
Enums for BatchLedger models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class WarehouseCategory(models.TextChoices):
    """What a warehouse is used for."""
    STORAGE = 'storage', _('Storage')
    PRODUCTION = 'production', _('Production')
    CUSTOMER = 'customer', _('Customer-facing')


class WarehouseStatus(models.TextChoices):
    ACTIVE = 'active', _('Active')
    INACTIVE = 'inactive', _('Inactive')


class TransactionType(models.TextChoices):
    """
    Direction of a ledger mutation.

    Quantities on transactions are always magnitudes; the type carries the
    sign. EDIT records the corrected quantity of the batch.
    """
    STOCK_IN = 'stockIn', _('Stock in')
    STOCK_OUT = 'stockOut', _('Stock out')
    TRANSFER_OUT = 'transferOut', _('Transfer out')
    TRANSFER_IN = 'transferIn', _('Transfer in')
    EDIT = 'edit', _('Edit')


class TransferStatus(models.TextChoices):
    """Lifecycle of a non-atomic transfer intent."""
    PENDING = 'pending', _('Pending')       # Recorded, nothing applied yet
    DEBITED = 'debited', _('Debited')       # Source decremented, destination not credited
    COMPLETED = 'completed', _('Completed') # Both sides applied
    FAILED = 'failed', _('Failed')          # Debit never happened
