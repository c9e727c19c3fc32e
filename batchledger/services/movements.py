"""
Ledger movements — state-changing operations (stock_in, stock_out, transfer, edit).

Every method validates its input before touching the database, runs under
transaction.atomic() with row locks, and writes the batch change and its
transaction record(s) together. A rejected call leaves no trace.

The ledger never retries a write. A quantity delta is not idempotent, so
retrying is left to the caller.
"""

import functools
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from batchledger.conf import batchledger_settings
from batchledger.exceptions import (
    DuplicateBatchError,
    InsufficientStockError,
    NotFoundError,
    PartialTransferError,
    ValidationError,
)
from batchledger.models.batch import Batch
from batchledger.models.enums import TransactionType, TransferStatus
from batchledger.models.transaction import Transaction
from batchledger.models.transfer import TransferIntent
from batchledger.services.batches import BatchStore
from batchledger.services.registry import Registry
from batchledger.services.transactions import (
    TransactionLog,
    build_correlation_id,
    build_transaction_id,
)
from batchledger.signals import ledger_posted

logger = logging.getLogger('batchledger')

_UNSET = object()

# The reason is embedded in transaction ids (max 255 chars together with
# warehouse code, batch code, type, stamps and collision suffix)
MAX_CODE_LENGTH = 50
MAX_REASON_LENGTH = 100


class LedgerMovements:
    """State-changing ledger methods."""

    # ══════════════════════════════════════════════════════════════
    # STOCK IN / STOCK OUT
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def stock_in(cls, quantity, product, warehouse, code: str, reason: str,
                 expiry_date=None, user=None, by: str = '') -> Batch:
        """
        Receive a new batch.

        One code is one physical receipt: a code that already exists in the
        warehouse is rejected, never merged.

        Raises:
            ValidationError: Bad quantity, empty code/reason, bad date
            NotFoundError: Unknown warehouse or product
            DuplicateBatchError: Code already used in this warehouse
            DuplicateTransactionError: Same submission already recorded today

        Concurrency:
            - Runs under transaction.atomic()
            - Creation races end on the unique (warehouse, code) constraint
        """
        qty = cls._clean_quantity(quantity)
        code = cls._clean_code(code)
        reason = cls._clean_reason(reason)
        expiry = cls._clean_date(expiry_date)
        wh = Registry.get_warehouse(warehouse)
        prod = Registry.get_product(product)
        actor = cls._actor(user, by)

        with transaction.atomic():
            BatchStore.lock_warehouses(wh)
            if BatchStore.lock(wh, code) is not None:
                raise DuplicateBatchError('DUPLICATE_BATCH', warehouse=wh.code, code=code)

            now = timezone.now()
            tx_id = TransactionLog.resolve_id(
                build_transaction_id(wh.code, code, TransactionType.STOCK_IN, reason, now)
            )
            batch = BatchStore.upsert_quantity(wh, code, qty, exclusive=True, attrs={
                'product_id': prod.pk,
                'product_name': prod.name,
                'unit': prod.unit,
                'category': prod.category,
                'expiry_date': expiry,
                'reason': reason,
                'created_by': actor,
            })
            tx = TransactionLog.append(
                tx_id, TransactionType.STOCK_IN, wh, batch, qty, reason, now,
                by=actor, user=user,
            )
            cls._notify('stock_in', [wh.code], [tx.id])

        logger.info(
            "ledger.stock_in",
            extra={
                "warehouse": wh.code,
                "code": code,
                "product": prod.name,
                "qty": qty,
                "reason": reason,
                "transaction_id": tx.id,
            },
        )
        return batch

    @classmethod
    def stock_out(cls, quantity, warehouse, code: str, reason: str,
                  product=None, user=None, by: str = '') -> Transaction:
        """
        Take quantity out of an existing batch.

        The batch may reach exactly zero; it is kept as an empty record.
        The transaction records the positive magnitude.

        Raises:
            ValidationError: Bad quantity, empty code/reason
            NotFoundError('BATCH_NOT_FOUND'): No such batch (for that product, if given)
            InsufficientStockError: quantity > batch.quantity (carries available)

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on the batch
            - Verifies quantity after lock
        """
        qty = cls._clean_quantity(quantity)
        code = cls._clean_code(code)
        reason = cls._clean_reason(reason)
        wh = Registry.get_warehouse(warehouse)
        actor = cls._actor(user, by)

        with transaction.atomic():
            BatchStore.lock_warehouses(wh)
            batch = cls._check_source(wh, BatchStore.lock(wh, code), code, qty, product)

            now = timezone.now()
            tx_id = TransactionLog.resolve_id(
                build_transaction_id(wh.code, code, TransactionType.STOCK_OUT, reason, now)
            )
            batch = BatchStore.upsert_quantity(wh, code, -qty)
            tx = TransactionLog.append(
                tx_id, TransactionType.STOCK_OUT, wh, batch, qty, reason, now,
                by=actor, user=user,
            )
            cls._notify('stock_out', [wh.code], [tx.id])

        logger.info(
            "ledger.stock_out",
            extra={
                "warehouse": wh.code,
                "code": code,
                "qty": qty,
                "remaining": batch.quantity,
                "reason": reason,
                "transaction_id": tx.id,
            },
        )
        return tx

    # ══════════════════════════════════════════════════════════════
    # TRANSFER
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def transfer(cls, quantity, source, destination, code: str,
                 product=None, user=None, by: str = '',
                 reason: str | None = None) -> tuple[Transaction, Transaction]:
        """
        Move quantity of a batch from one warehouse to another.

        1. Validate the source batch and quantity
        2. Debit the source
        3. Credit the destination: merge into the same code, or create a
           batch copying product, unit, category and expiry from the source
        4. Write transferOut (source) and transferIn (destination) sharing
           a correlation id

        With ATOMIC_TRANSFERS (default) the four steps are one DB
        transaction. Otherwise a TransferIntent is persisted and the two
        sides commit separately; see _transfer_with_intent.

        Returns:
            (transferOut, transferIn) transactions

        Raises:
            ValidationError: Bad quantity/code, same warehouse
            NotFoundError: Unknown warehouse or batch
            InsufficientStockError: quantity > source batch quantity
            DuplicateBatchError: Destination holds the code for another product
            PartialTransferError: Non-atomic mode only, credit failed after debit
        """
        qty = cls._clean_quantity(quantity)
        code = cls._clean_code(code)
        reason = cls._clean_reason(reason or batchledger_settings.TRANSFER_REASON)
        src = Registry.get_warehouse(source)
        dst = Registry.get_warehouse(destination)
        if src.pk == dst.pk:
            raise ValidationError('SAME_WAREHOUSE', warehouse=src.code)
        actor = cls._actor(user, by)

        if batchledger_settings.ATOMIC_TRANSFERS:
            out_tx, in_tx = cls._transfer_atomic(src, dst, code, qty, product, reason, actor, user)
        else:
            out_tx, in_tx = cls._transfer_with_intent(src, dst, code, qty, product, reason, actor, user)

        logger.info(
            "ledger.transfer",
            extra={
                "source": src.code,
                "destination": dst.code,
                "code": code,
                "qty": qty,
                "correlation_id": out_tx.correlation_id,
            },
        )
        return out_tx, in_tx

    @classmethod
    def resume_transfer(cls, intent_id: int) -> Transaction:
        """
        Credit the destination of a transfer left DEBITED.

        Reconciliation tooling only. Writes the transferIn record with the
        id that was reserved when the transfer started.

        Raises:
            NotFoundError('TRANSFER_NOT_FOUND')
            ValidationError('INVALID_STATUS'): Intent is not DEBITED
        """
        with transaction.atomic():
            try:
                intent = (
                    TransferIntent.objects.select_for_update()
                    .select_related('source', 'destination')
                    .get(pk=intent_id)
                )
            except TransferIntent.DoesNotExist:
                raise NotFoundError('TRANSFER_NOT_FOUND', intent_id=intent_id)

            if intent.status != TransferStatus.DEBITED:
                raise ValidationError(
                    'INVALID_STATUS',
                    current=intent.status,
                    expected=TransferStatus.DEBITED,
                )

            in_tx = cls._complete_intent(intent, operation='resume_transfer')

        logger.info(
            "ledger.transfer.resumed",
            extra={"intent_id": intent.pk, "correlation_id": intent.correlation_id},
        )
        return in_tx

    # ══════════════════════════════════════════════════════════════
    # EDIT
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def edit(cls, warehouse, code: str, quantity=None, expiry_date=_UNSET,
             reason: str = 'Edit', user=None, by: str = '') -> Transaction | None:
        """
        Correct a batch's quantity and/or expiry in place.

        The edit transaction records the corrected quantity; the previous
        values go into its metadata.

        Returns:
            The edit Transaction, or None when nothing changes.

        Raises:
            ValidationError: Negative quantity, bad date, empty reason
            NotFoundError('BATCH_NOT_FOUND')
        """
        code = cls._clean_code(code)
        reason = cls._clean_reason(reason)
        new_qty = None if quantity is None else cls._clean_quantity(quantity, allow_zero=True)
        new_expiry = _UNSET if expiry_date is _UNSET else cls._clean_date(expiry_date)
        wh = Registry.get_warehouse(warehouse)
        actor = cls._actor(user, by)

        with transaction.atomic():
            BatchStore.lock_warehouses(wh)
            batch = BatchStore.lock(wh, code)
            if batch is None:
                raise NotFoundError('BATCH_NOT_FOUND', warehouse=wh.code, code=code)

            previous_qty, previous_expiry = batch.quantity, batch.expiry_date
            target_qty = previous_qty if new_qty is None else new_qty
            target_expiry = previous_expiry if new_expiry is _UNSET else new_expiry

            if target_qty == previous_qty and target_expiry == previous_expiry:
                return None

            now = timezone.now()
            tx_id = TransactionLog.resolve_id(
                build_transaction_id(wh.code, code, TransactionType.EDIT, reason, now)
            )
            batch = BatchStore.set_quantity(wh, code, target_qty, expiry_date=target_expiry)
            tx = TransactionLog.append(
                tx_id, TransactionType.EDIT, wh, batch, target_qty, reason, now,
                by=actor, user=user,
                previous_quantity=previous_qty,
                previous_expiry=previous_expiry.isoformat() if previous_expiry else None,
            )
            cls._notify('edit', [wh.code], [tx.id])

        logger.info(
            "ledger.edit",
            extra={
                "warehouse": wh.code,
                "code": code,
                "previous": previous_qty,
                "quantity": target_qty,
                "transaction_id": tx.id,
            },
        )
        return tx

    @classmethod
    def remove_batch(cls, warehouse, code: str, reason: str = 'Removed',
                     user=None, by: str = '') -> Transaction | None:
        """
        Delete one batch from a warehouse, keeping its history.

        Remaining quantity is first taken out with a stock-out record, so
        the log still accounts for every unit. An empty batch is deleted
        without a new record.

        Returns:
            The stock-out Transaction, or None when the batch was empty.

        Raises:
            ValidationError: Empty code/reason
            NotFoundError('BATCH_NOT_FOUND')
        """
        code = cls._clean_code(code)
        reason = cls._clean_reason(reason)
        wh = Registry.get_warehouse(warehouse)
        actor = cls._actor(user, by)

        with transaction.atomic():
            BatchStore.lock_warehouses(wh)
            batch = BatchStore.lock(wh, code)
            if batch is None:
                raise NotFoundError('BATCH_NOT_FOUND', warehouse=wh.code, code=code)

            removed = batch.quantity
            tx = None
            if removed:
                now = timezone.now()
                tx_id = TransactionLog.resolve_id(
                    build_transaction_id(wh.code, code, TransactionType.STOCK_OUT, reason, now)
                )
                batch = BatchStore.upsert_quantity(wh, code, -removed)
                tx = TransactionLog.append(
                    tx_id, TransactionType.STOCK_OUT, wh, batch, removed, reason, now,
                    by=actor, user=user, removed_batch=True,
                )
            BatchStore.delete(wh, code)
            cls._notify('remove_batch', [wh.code], [tx.id] if tx else [])

        logger.info(
            "ledger.remove_batch",
            extra={"warehouse": wh.code, "code": code, "qty": removed},
        )
        return tx

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _transfer_atomic(cls, src, dst, code, qty, product, reason, actor, user):
        with transaction.atomic():
            BatchStore.lock_warehouses(src, dst)
            src_batch, dst_batch = cls._lock_pair(src, dst, code)
            src_batch = cls._check_source(src, src_batch, code, qty, product)
            cls._check_destination(dst, dst_batch, src_batch.product_name)

            now = timezone.now()
            out_id, in_id, correlation = cls._transfer_ids(src, dst, code, now)

            src_batch = BatchStore.upsert_quantity(src, code, -qty)
            dst_batch = cls._credit_destination(dst, code, qty, cls._snapshot(src_batch, reason, actor))

            out_tx = TransactionLog.append(
                out_id, TransactionType.TRANSFER_OUT, src, src_batch, qty, reason, now,
                by=actor, user=user, counterpart=dst.code, correlation_id=correlation,
            )
            in_tx = TransactionLog.append(
                in_id, TransactionType.TRANSFER_IN, dst, dst_batch, qty, reason, now,
                by=actor, user=user, counterpart=src.code, correlation_id=correlation,
            )
            cls._notify('transfer', [src.code, dst.code], [out_tx.id, in_tx.id])
        return out_tx, in_tx

    @classmethod
    def _transfer_with_intent(cls, src, dst, code, qty, product, reason, actor, user):
        """
        Saga variant: intent, then debit, then credit, each committed on its own.

        The source is always debited before the destination is credited. If
        the credit fails the intent stays DEBITED and PartialTransferError is
        raised; nothing tries to undo the debit.
        """
        # Unlocked pre-check, so a bad request leaves no intent behind
        src_batch = cls._check_source(
            src, Batch.objects.filter(warehouse=src, code=code).first(), code, qty, product,
        )
        cls._check_destination(
            dst, Batch.objects.filter(warehouse=dst, code=code).first(), src_batch.product_name,
        )

        now = timezone.now()
        out_id, in_id, correlation = cls._transfer_ids(src, dst, code, now)
        snapshot = cls._snapshot(src_batch, reason, actor)
        intent = TransferIntent.objects.create(
            source=src,
            destination=dst,
            code=code,
            product_name=src_batch.product_name,
            quantity=qty,
            correlation_id=correlation,
            payload={
                **snapshot,
                'expiry_date': snapshot['expiry_date'].isoformat() if snapshot['expiry_date'] else None,
                'timestamp': now.isoformat(),
                'out_id': out_id,
                'in_id': in_id,
                'user_id': getattr(user, 'pk', None),
            },
        )

        try:
            with transaction.atomic():
                BatchStore.lock_warehouses(src)
                cls._check_source(src, BatchStore.lock(src, code), code, qty, product)
                src_batch = BatchStore.upsert_quantity(src, code, -qty)
                out_tx = TransactionLog.append(
                    out_id, TransactionType.TRANSFER_OUT, src, src_batch, qty, reason, now,
                    by=actor, user=user, counterpart=dst.code, correlation_id=correlation,
                )
                cls._notify('transfer', [src.code], [out_tx.id])
        except Exception as exc:
            intent.status = TransferStatus.FAILED
            intent.error = str(exc)
            intent.resolved_at = timezone.now()
            intent.save(update_fields=['status', 'error', 'resolved_at'])
            raise

        intent.status = TransferStatus.DEBITED
        intent.save(update_fields=['status'])

        try:
            in_tx = cls._complete_intent(intent, operation='transfer')
        except Exception as exc:
            intent.error = str(exc)
            intent.save(update_fields=['error'])
            logger.warning(
                "ledger.transfer.partial",
                extra={
                    "intent_id": intent.pk,
                    "source": src.code,
                    "destination": dst.code,
                    "code": code,
                    "qty": qty,
                    "error": str(exc),
                },
            )
            raise PartialTransferError(
                'PARTIAL_TRANSFER',
                source=src.code,
                destination=dst.code,
                code=code,
                quantity=qty,
                intent_id=intent.pk,
                correlation_id=correlation,
            ) from exc

        return out_tx, in_tx

    @classmethod
    def _complete_intent(cls, intent: TransferIntent, operation: str) -> Transaction:
        """Credit the destination of a DEBITED intent and close it."""
        payload = intent.payload
        attrs = {
            key: payload.get(key)
            for key in ('product_id', 'product_name', 'unit', 'category', 'reason', 'created_by')
        }
        attrs['expiry_date'] = date.fromisoformat(payload['expiry_date']) if payload.get('expiry_date') else None
        dst = intent.destination

        with transaction.atomic():
            BatchStore.lock_warehouses(dst)
            cls._check_destination(dst, BatchStore.lock(dst, intent.code), intent.product_name)
            dst_batch = cls._credit_destination(dst, intent.code, intent.quantity, attrs)
            # The reserved id may have been taken by a later transfer in the same second
            in_id = TransactionLog.resolve_id(payload['in_id'], reject=False)
            in_tx = TransactionLog.append(
                in_id, TransactionType.TRANSFER_IN, dst, dst_batch,
                intent.quantity, payload['reason'], datetime.fromisoformat(payload['timestamp']),
                by=payload.get('created_by', ''), user=payload.get('user_id'),
                counterpart=intent.source.code, correlation_id=intent.correlation_id,
            )
            intent.status = TransferStatus.COMPLETED
            intent.error = ''
            intent.resolved_at = timezone.now()
            intent.save(update_fields=['status', 'error', 'resolved_at'])
            cls._notify(operation, [dst.code], [in_tx.id])
        return in_tx

    @classmethod
    def _credit_destination(cls, warehouse, code: str, quantity: int, attrs: dict) -> Batch:
        """Merge into the destination batch with the same code, or create it."""
        return BatchStore.upsert_quantity(warehouse, code, quantity, attrs=attrs)

    @classmethod
    def _lock_pair(cls, src, dst, code: str):
        # Warehouse-code order, so opposite transfers cannot deadlock
        locked = {
            wh.pk: BatchStore.lock(wh, code)
            for wh in sorted([src, dst], key=lambda w: w.code)
        }
        return locked[src.pk], locked[dst.pk]

    @classmethod
    def _check_source(cls, warehouse, batch: Batch | None, code: str,
                      quantity: int, product=None) -> Batch:
        if batch is None:
            raise NotFoundError('BATCH_NOT_FOUND', warehouse=warehouse.code, code=code)

        if product is not None:
            name = getattr(product, 'name', product)
            if batch.product_name != name:
                raise NotFoundError(
                    'BATCH_NOT_FOUND', warehouse=warehouse.code, code=code, product=name,
                )

        if quantity > batch.quantity:
            raise InsufficientStockError(
                'INSUFFICIENT_STOCK',
                available=batch.quantity,
                requested=quantity,
                warehouse=warehouse.code,
                code=code,
            )
        return batch

    @classmethod
    def _check_destination(cls, warehouse, batch: Batch | None, product_name: str) -> None:
        if batch is not None and batch.product_name != product_name:
            raise DuplicateBatchError(
                'DUPLICATE_BATCH',
                warehouse=warehouse.code,
                code=batch.code,
                product=batch.product_name,
            )

    @classmethod
    def _transfer_ids(cls, src, dst, code: str, now: datetime) -> tuple[str, str, str]:
        base_out = build_transaction_id(src.code, code, TransactionType.TRANSFER_OUT, dst.code, now)
        out_id = TransactionLog.resolve_id(base_out, reject=False)
        in_id = TransactionLog.resolve_id(
            build_transaction_id(dst.code, code, TransactionType.TRANSFER_IN, src.code, now),
            reject=False,
        )
        # Same-second transfers share a base id; the suffix keeps their pairs apart
        correlation = build_correlation_id(src.code, dst.code, code, now) + out_id[len(base_out):]
        return out_id, in_id, correlation

    @classmethod
    def _snapshot(cls, batch: Batch, reason: str, actor: str) -> dict:
        """Attributes a destination batch inherits from its source."""
        return {
            'product_id': batch.product_id,
            'product_name': batch.product_name,
            'unit': batch.unit,
            'category': batch.category,
            'expiry_date': batch.expiry_date,
            'reason': reason,
            'created_by': actor,
        }

    @classmethod
    def _notify(cls, operation: str, warehouses: list[str], transactions: list[str]) -> None:
        transaction.on_commit(functools.partial(
            ledger_posted.send,
            sender=cls,
            operation=operation,
            warehouses=warehouses,
            transactions=transactions,
        ))

    @classmethod
    def _actor(cls, user=None, by: str = '') -> str:
        if by and by.strip():
            return by.strip()
        if user is not None:
            full_name = user.get_full_name() if hasattr(user, 'get_full_name') else ''
            return full_name or user.get_username()
        return batchledger_settings.DEFAULT_ACTOR

    @classmethod
    def _clean_quantity(cls, quantity, allow_zero: bool = False) -> int:
        """Integer quantity > 0 (or >= 0 with allow_zero)."""
        if isinstance(quantity, bool):
            raise ValidationError('INVALID_QUANTITY', requested=quantity)
        if isinstance(quantity, int):
            value = quantity
        else:
            try:
                number = Decimal(str(quantity).strip())
            except InvalidOperation:
                raise ValidationError('INVALID_QUANTITY', requested=quantity)
            if not number.is_finite() or number != number.to_integral_value():
                raise ValidationError('INVALID_QUANTITY', requested=quantity)
            value = int(number)

        if value < 0 or (value == 0 and not allow_zero):
            raise ValidationError('INVALID_QUANTITY', requested=quantity)
        return value

    @classmethod
    def _clean_code(cls, code) -> str:
        code = (code or '').strip()
        if not code:
            raise ValidationError('CODE_REQUIRED')
        if len(code) > MAX_CODE_LENGTH:
            raise ValidationError('CODE_TOO_LONG', length=len(code), limit=MAX_CODE_LENGTH)
        return code

    @classmethod
    def _clean_reason(cls, reason) -> str:
        reason = (reason or '').strip()
        if not reason:
            raise ValidationError('REASON_REQUIRED')
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationError('REASON_TOO_LONG', length=len(reason), limit=MAX_REASON_LENGTH)
        return reason

    @classmethod
    def _clean_date(cls, value) -> date | None:
        if value in (None, ''):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            raise ValidationError('INVALID_DATE', value=value)
