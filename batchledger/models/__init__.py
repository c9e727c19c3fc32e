"""
BatchLedger Models.

Core models for the batch ledger:
- Warehouse: Where batches are held
- Product: Catalog entry (name is the key)
- Batch: Current quantity per (warehouse, code)
- Transaction: Immutable log of every change
- LowStockSetting: Per-warehouse threshold override
- TransferIntent: Saga record for non-atomic transfers
"""

from batchledger.models.alert import LowStockSetting
from batchledger.models.batch import Batch
from batchledger.models.enums import (
    TransactionType,
    TransferStatus,
    WarehouseCategory,
    WarehouseStatus,
)
from batchledger.models.product import Product
from batchledger.models.transaction import Transaction
from batchledger.models.transfer import TransferIntent
from batchledger.models.warehouse import Warehouse

__all__ = [
    'WarehouseCategory',
    'WarehouseStatus',
    'TransactionType',
    'TransferStatus',
    'Warehouse',
    'Product',
    'Batch',
    'Transaction',
    'LowStockSetting',
    'TransferIntent',
]
