"""
Exceptions for BatchLedger.

Every error is a LedgerError with a structured code for programmatic handling.
Subclasses group the codes by how a caller is expected to react.
"""

from typing import Any


class LedgerError(Exception):
    """
    Structured exception for ledger operations.

    Usage:
        try:
            ledger.stock_out(40, 'W1', 'B001', reason='Used')
        except InsufficientStockError as e:
            print(f"Only {e.available} left")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data (data['code'] is the batch code, if any)
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, /, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: v if isinstance(v, (int, float, bool, type(None))) else str(v)
                for k, v in self.data.items()
            },
        }


class ValidationError(LedgerError):
    """Missing or invalid input. Raised before any state change."""

    _default_messages = {
        'INVALID_QUANTITY': 'Quantity must be a positive integer',
        'CODE_REQUIRED': 'Batch code is required',
        'REASON_REQUIRED': 'Reason is required',
        'SAME_WAREHOUSE': 'Source and destination warehouses must differ',
        'INVALID_DATE': 'Invalid expiry date',
        'INVALID_STATUS': 'Invalid status for this operation',
        'CODE_TOO_LONG': 'Batch code is too long',
        'REASON_TOO_LONG': 'Reason is too long',
    }


class DuplicateBatchError(LedgerError):
    """Stock-in to a code that already exists in the warehouse."""

    _default_messages = {
        'DUPLICATE_BATCH': 'A batch with this code already exists in this warehouse',
    }


class InsufficientStockError(LedgerError):
    """Requested quantity exceeds what the batch holds."""

    _default_messages = {
        'INSUFFICIENT_STOCK': 'Quantity exceeds available stock',
    }

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)


class NotFoundError(LedgerError):
    """Reference to a nonexistent warehouse, product, batch or transfer."""

    _default_messages = {
        'WAREHOUSE_NOT_FOUND': 'Warehouse not found',
        'PRODUCT_NOT_FOUND': 'Product not found',
        'BATCH_NOT_FOUND': 'Batch not found',
        'INSUFFICIENT_BATCH_QUANTITY': 'Batch does not hold enough quantity for this change',
        'TRANSFER_NOT_FOUND': 'Transfer intent not found',
    }


class DuplicateTransactionError(LedgerError):
    """A transaction with the same deterministic id was already recorded."""

    _default_messages = {
        'DUPLICATE_TRANSACTION': 'An identical transaction was already recorded today',
    }


class PartialTransferError(LedgerError):
    """
    Source was debited but the destination credit failed.

    Fatal to the operation, not to the process. The data carries the
    warehouse pair, code, quantity and intent id needed for reconciliation.
    """

    _default_messages = {
        'PARTIAL_TRANSFER': 'Transfer debited the source but did not credit the destination',
    }

    @property
    def intent_id(self) -> int | None:
        return self.data.get('intent_id')
