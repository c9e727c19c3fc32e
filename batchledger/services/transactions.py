"""
Transaction log — deterministic ids, append and history queries.

Ids are built from their components instead of being random, so a
repeated submission produces the same id and can be detected, and an id
can be rebuilt from (warehouse, code, type, reason, date[, time]) during
reconciliation:

    {warehouse}-{code}-{type}-{reason or counterpart}-{YYYYMMDD}[-{HHMMSS}]

Stock-in, stock-out and edit carry the reason and a date-only stamp.
Transfers carry the counterpart warehouse and a time-of-day stamp, so
several transfers of one batch on the same day do not collide.
"""

import logging
from datetime import datetime, timezone as dt_timezone

from django.db import IntegrityError, transaction

from batchledger.conf import batchledger_settings
from batchledger.exceptions import DuplicateTransactionError
from batchledger.models.enums import TransactionType
from batchledger.models.transaction import Transaction
from batchledger.services.registry import Registry

logger = logging.getLogger('batchledger')

TRANSFER_TYPES = (TransactionType.TRANSFER_OUT, TransactionType.TRANSFER_IN)


def _utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone(dt_timezone.utc)


def date_stamp(timestamp: datetime) -> str:
    return _utc(timestamp).strftime('%Y%m%d')


def time_stamp(timestamp: datetime) -> str:
    return _utc(timestamp).strftime('%H%M%S')


def build_transaction_id(warehouse_code: str, code: str, tx_type: str,
                         qualifier: str, timestamp: datetime,
                         with_time: bool | None = None) -> str:
    """
    Build the deterministic id of a transaction.

    Args:
        warehouse_code: Warehouse the record belongs to
        code: Batch code
        tx_type: TransactionType value
        qualifier: Reason, or the counterpart warehouse code for transfers
        timestamp: Operation time (converted to UTC)
        with_time: Append HHMMSS. Defaults to True for transfer types.

    Returns:
        The id string. Identical inputs always give an identical id.
    """
    if with_time is None:
        with_time = tx_type in TRANSFER_TYPES
    parts = [warehouse_code, code, str(tx_type), qualifier, date_stamp(timestamp)]
    if with_time:
        parts.append(time_stamp(timestamp))
    return '-'.join(parts)


def build_correlation_id(source_code: str, destination_code: str,
                         code: str, timestamp: datetime) -> str:
    """Shared lineage of the two records of one transfer."""
    return '-'.join([
        source_code, destination_code, code,
        date_stamp(timestamp), time_stamp(timestamp),
    ])


class TransactionLog:
    """Append-only access to Transaction records."""

    @classmethod
    def resolve_id(cls, base_id: str, reject: bool | None = None) -> str:
        """
        Apply the collision policy to a freshly built id.

        Call before mutating any batch so that a rejected submission leaves
        no state change.

        Args:
            base_id: Id from build_transaction_id()
            reject: Override TRANSACTION_ID_COLLISION. Transfers pass False:
                two transfers of a batch on the same day never collide.

        Raises:
            DuplicateTransactionError: If the id exists and the policy is "reject"
        """
        if not Transaction.objects.filter(pk=base_id).exists():
            return base_id

        if reject is None:
            reject = batchledger_settings.TRANSACTION_ID_COLLISION == 'reject'
        if reject:
            raise DuplicateTransactionError('DUPLICATE_TRANSACTION', transaction_id=base_id)

        n = 2
        while Transaction.objects.filter(pk=f"{base_id}-{n}").exists():
            n += 1
        return f"{base_id}-{n}"

    @classmethod
    def append(cls, tx_id: str, tx_type: str, warehouse, batch, quantity: int,
               reason: str, timestamp: datetime, by: str = '', user=None,
               counterpart: str = '', correlation_id: str = '',
               **metadata) -> Transaction:
        """
        Write one immutable record.

        Product, unit, category and expiry are copied from the batch as it
        is at the time of the call. user may be a user instance or its pk.

        Raises:
            DuplicateTransactionError: tx_id was taken after resolve_id()
        """
        try:
            with transaction.atomic():
                tx = Transaction.objects.create(
                    id=tx_id,
                    type=tx_type,
                    warehouse=warehouse,
                    product_id=batch.product_id,
                    product_name=batch.product_name,
                    code=batch.code,
                    quantity=quantity,
                    unit=batch.unit,
                    category=batch.category,
                    expiry_date=batch.expiry_date,
                    reason=reason,
                    counterpart_warehouse=counterpart,
                    correlation_id=correlation_id,
                    by=by,
                    user_id=getattr(user, 'pk', user),
                    timestamp=timestamp,
                    metadata=metadata,
                )
        except IntegrityError:
            if Transaction.objects.filter(pk=tx_id).exists():
                raise DuplicateTransactionError('DUPLICATE_TRANSACTION', transaction_id=tx_id)
            raise
        logger.debug("ledger.transaction.appended", extra={"transaction_id": tx_id})
        return tx

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def history(cls, warehouse=None, code: str | None = None,
                tx_type: str | None = None):
        """Transactions, latest first."""
        qs = Transaction.objects.select_related('warehouse')
        if warehouse is not None:
            qs = qs.in_warehouse(Registry.get_warehouse(warehouse))
        if code is not None:
            qs = qs.for_code(code)
        if tx_type is not None:
            qs = qs.filter(type=tx_type)
        return qs.latest_first()

    @classmethod
    def transfer_pair(cls, correlation_id: str) -> tuple[Transaction | None, Transaction | None]:
        """Both sides of a transfer. A missing side is None."""
        records = {
            tx.type: tx
            for tx in Transaction.objects.filter(correlation_id=correlation_id)
        }
        return (
            records.get(TransactionType.TRANSFER_OUT),
            records.get(TransactionType.TRANSFER_IN),
        )
