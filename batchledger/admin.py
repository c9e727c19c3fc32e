"""
BatchLedger Admin.

Operator views:
- Warehouse, Product, LowStockSetting: editable
- Batch: read-only (quantity only changes via the ledger)
- Transaction: read-only audit trail
- TransferIntent: read-only with "resume" action
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from batchledger.exceptions import LedgerError
from batchledger.models import (
    Batch,
    LowStockSetting,
    Product,
    Transaction,
    TransferIntent,
    TransferStatus,
    Warehouse,
)

logger = logging.getLogger(__name__)


class ReadOnlyAdmin(admin.ModelAdmin):

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# WAREHOUSE / PRODUCT ADMIN
# =========================================================================

@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    """Warehouse admin — editable, code fixed after creation."""

    list_display = ['code', 'name', 'location', 'category', 'status', 'total_items']
    list_filter = ['category', 'status']
    search_fields = ['code', 'name', 'location']

    def get_readonly_fields(self, request, obj=None):
        fields = ['total_items', 'created_at', 'updated_at']
        if obj is not None:
            fields.insert(0, 'code')
        return fields


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):

    list_display = ['name', 'category', 'unit', 'low_stock_threshold']
    list_filter = ['category']
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(LowStockSetting)
class LowStockSettingAdmin(admin.ModelAdmin):
    """Per-warehouse threshold overrides."""

    list_display = ['product', 'warehouse', 'threshold']
    list_filter = ['warehouse']
    search_fields = ['product__name']
    readonly_fields = ['created_at', 'updated_at']


# =========================================================================
# BATCH / TRANSACTION ADMIN (read-only)
# =========================================================================

@admin.register(Batch)
class BatchAdmin(ReadOnlyAdmin):

    list_display = ['code', 'warehouse', 'product_name', 'quantity', 'unit',
                    'expiry_date', 'is_expired_display']
    list_filter = ['warehouse', 'category', 'expiry_date']
    search_fields = ['code', 'product_name']

    @admin.display(description=_('Expired?'), boolean=True)
    def is_expired_display(self, obj):
        return obj.is_expired


@admin.register(Transaction)
class TransactionAdmin(ReadOnlyAdmin):
    """Immutable audit trail."""

    list_display = ['timestamp', 'type', 'warehouse', 'code', 'product_name',
                    'quantity', 'reason', 'by']
    list_filter = ['type', 'warehouse', 'timestamp']
    search_fields = ['id', 'code', 'product_name', 'reason', 'correlation_id']
    date_hierarchy = 'timestamp'


# =========================================================================
# TRANSFER INTENT ADMIN (read-only with resume action)
# =========================================================================

@admin.register(TransferIntent)
class TransferIntentAdmin(ReadOnlyAdmin):

    list_display = ['id', 'code', 'source', 'destination', 'quantity', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['code', 'correlation_id']
    actions = ['resume_transfers']

    @admin.action(description=_('Resume selected transfers'))
    def resume_transfers(self, request, queryset):
        from batchledger import ledger

        count = 0
        for intent in queryset.filter(status=TransferStatus.DEBITED):
            try:
                ledger.resume_transfer(intent.pk)
                count += 1
            except LedgerError as exc:
                logger.warning("resume_transfers: failed to resume %s: %s", intent.pk, exc)

        self.message_user(request, _('{count} transfer(s) resumed.').format(count=count))
