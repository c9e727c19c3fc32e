"""
Django BatchLedger — multi-warehouse batch inventory ledger.

Usage:
    from batchledger import ledger, LedgerError

    ledger.stock_in(50, 'Vanilla Syrup', 'W1', code='B001', reason='New Supply')
    ledger.transfer(30, 'W1', 'W2', 'B001')
    ledger.evaluate('W2')
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'ledger':
        from batchledger.service import Ledger
        return Ledger
    elif name == 'LedgerError':
        from batchledger.exceptions import LedgerError
        return LedgerError
    elif name == 'Warehouse':
        from batchledger.models.warehouse import Warehouse
        return Warehouse
    elif name == 'Product':
        from batchledger.models.product import Product
        return Product
    elif name == 'Batch':
        from batchledger.models.batch import Batch
        return Batch
    elif name == 'Transaction':
        from batchledger.models.transaction import Transaction
        return Transaction
    elif name == 'TransactionType':
        from batchledger.models.enums import TransactionType
        return TransactionType
    elif name == 'LowStockSetting':
        from batchledger.models.alert import LowStockSetting
        return LowStockSetting
    elif name == 'LowStockAlert':
        from batchledger.services.alerts import LowStockAlert
        return LowStockAlert
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'ledger',
    'LedgerError',
    'Warehouse',
    'Product',
    'Batch',
    'Transaction',
    'TransactionType',
    'LowStockSetting',
    'LowStockAlert',
]

__version__ = '0.1.0'
