"""
Ledger Service — The single public interface for all ledger operations.

Usage:
    from batchledger import ledger, LedgerError

    ledger.stock_in(50, 'Vanilla Syrup', 'W1', code='B001', reason='New Supply')
    ledger.stock_out(20, 'W1', 'B001', reason='Used')
    ledger.transfer(30, 'W1', 'W2', 'B001')
    ledger.get('W1')           # [Batch B001: 0]
    ledger.evaluate()          # low-stock alerts
"""

from batchledger.services.alerts import LowStockEvaluator
from batchledger.services.batches import BatchStore
from batchledger.services.movements import LedgerMovements
from batchledger.services.queries import LedgerQueries
from batchledger.services.registry import Registry
from batchledger.services.transactions import TransactionLog


class Ledger(LedgerQueries, LedgerMovements, LowStockEvaluator, Registry):
    """
    Single interface for all ledger operations.

    Parameter convention: (quantity, product, warehouse, ...)
    Follows natural language: "Stock in 50 Vanilla Syrup to W1"

    Warehouses and products may be passed as instances or by key
    (warehouse code, product name).

    IMPORTANT: All state-changing methods use atomic transactions
    with row locks. See each method's docstring.
    """

    @classmethod
    def history(cls, warehouse=None, code: str | None = None, tx_type: str | None = None):
        """Transactions, latest first."""
        return TransactionLog.history(warehouse=warehouse, code=code, tx_type=tx_type)

    @classmethod
    def transfer_pair(cls, correlation_id: str):
        return TransactionLog.transfer_pair(correlation_id)

    @classmethod
    def purge_empty(cls, warehouse) -> int:
        """Remove zero-quantity batches of a warehouse."""
        return BatchStore.purge_empty(cls.get_warehouse(warehouse))

    @classmethod
    def recalculate_total(cls, warehouse) -> int:
        return BatchStore.recalculate_total(cls.get_warehouse(warehouse))
