"""
Ledger services — modular organization of ledger operations.

Re-exports the building blocks that the Ledger facade combines:
    from batchledger.services import LedgerQueries, LedgerMovements, LowStockEvaluator
"""

from batchledger.services.alerts import LowStockAlert, LowStockEvaluator
from batchledger.services.batches import BatchStore
from batchledger.services.movements import LedgerMovements
from batchledger.services.queries import LedgerQueries
from batchledger.services.registry import Registry
from batchledger.services.transactions import TransactionLog, build_transaction_id

__all__ = [
    'BatchStore',
    'LedgerMovements',
    'LedgerQueries',
    'LowStockAlert',
    'LowStockEvaluator',
    'Registry',
    'TransactionLog',
    'build_transaction_id',
]
