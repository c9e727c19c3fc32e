"""
Batch store — the only code that changes Batch.quantity.

All methods run under transaction.atomic() with row locks. Every change
refreshes the owning warehouse's total_items in the same DB transaction.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import F, IntegerField, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from batchledger.exceptions import DuplicateBatchError, NotFoundError
from batchledger.models.batch import Batch
from batchledger.models.warehouse import Warehouse

logger = logging.getLogger('batchledger')

_UNSET = object()


class BatchStore:
    """Current-state table of the ledger, keyed by (warehouse, code)."""

    @classmethod
    def lock_warehouses(cls, *warehouses: Warehouse) -> None:
        """
        Row-lock warehouses in code order. Must be called inside transaction.atomic().

        Every change to a warehouse's batches takes this lock before any
        batch lock, so total_items is recomputed by one DB transaction at a
        time and opposite transfers acquire their locks in the same order.
        """
        pks = {wh.pk for wh in warehouses}
        list(
            Warehouse.objects.select_for_update()
            .filter(pk__in=pks)
            .order_by('code')
            .values_list('pk', flat=True)
        )

    @classmethod
    def lock(cls, warehouse: Warehouse, code: str) -> Batch | None:
        """
        Fetch a batch with a row lock. Must be called inside transaction.atomic().
        """
        return (
            Batch.objects.select_for_update()
            .filter(warehouse=warehouse, code=code)
            .first()
        )

    @classmethod
    def upsert_quantity(cls, warehouse: Warehouse, code: str, delta: int,
                        attrs: dict | None = None, exclusive: bool = False) -> Batch:
        """
        Add delta to a batch, creating it when absent.

        Args:
            warehouse: Owning warehouse
            code: Batch code
            delta: Signed change
            attrs: Fields for a new batch (product_id, product_name, unit,
                category, expiry_date, reason, created_by)
            exclusive: Only create; an existing batch is a DuplicateBatchError

        Raises:
            NotFoundError('BATCH_NOT_FOUND'): Batch absent and nothing to create it from
            NotFoundError('INSUFFICIENT_BATCH_QUANTITY'): delta would make quantity negative
            DuplicateBatchError: exclusive and the code exists, or a lost creation race

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on the batch
            - Conditional UPDATE ... WHERE quantity >= -delta
        """
        with transaction.atomic():
            cls.lock_warehouses(warehouse)
            batch = cls.lock(warehouse, code)

            if batch is None:
                if attrs is None or delta < 0:
                    raise NotFoundError('BATCH_NOT_FOUND', warehouse=warehouse.code, code=code)
                batch = cls._create(warehouse, code, delta, attrs)
            elif exclusive:
                raise DuplicateBatchError('DUPLICATE_BATCH', warehouse=warehouse.code, code=code)
            else:
                updated = Batch.objects.filter(
                    pk=batch.pk, quantity__gte=-delta,
                ).update(
                    quantity=F('quantity') + delta,
                    updated_at=timezone.now(),
                )
                if not updated:
                    raise NotFoundError(
                        'INSUFFICIENT_BATCH_QUANTITY',
                        warehouse=warehouse.code,
                        code=code,
                        available=batch.quantity,
                        requested=-delta,
                    )
                batch.refresh_from_db()

            cls.recalculate_total(warehouse)
            return batch

    @classmethod
    def set_quantity(cls, warehouse: Warehouse, code: str, new_quantity: int,
                     expiry_date=_UNSET) -> Batch:
        """
        Overwrite a batch's quantity (and optionally its expiry).

        Raises:
            NotFoundError('BATCH_NOT_FOUND')
        """
        if new_quantity < 0:
            raise ValueError("Batch quantity cannot be negative")

        with transaction.atomic():
            cls.lock_warehouses(warehouse)
            batch = cls.lock(warehouse, code)
            if batch is None:
                raise NotFoundError('BATCH_NOT_FOUND', warehouse=warehouse.code, code=code)

            batch.quantity = new_quantity
            fields = ['quantity', 'updated_at']
            if expiry_date is not _UNSET:
                batch.expiry_date = expiry_date
                fields.append('expiry_date')
            batch.save(update_fields=fields)

            cls.recalculate_total(warehouse)
            return batch

    @classmethod
    def delete(cls, warehouse: Warehouse, code: str) -> None:
        """
        Delete one batch row. Its transactions stay.

        Raises:
            NotFoundError('BATCH_NOT_FOUND')
        """
        with transaction.atomic():
            cls.lock_warehouses(warehouse)
            deleted, _ = Batch.objects.filter(warehouse=warehouse, code=code).delete()
            if not deleted:
                raise NotFoundError('BATCH_NOT_FOUND', warehouse=warehouse.code, code=code)
            cls.recalculate_total(warehouse)

    @classmethod
    def purge_empty(cls, warehouse: Warehouse) -> int:
        """Delete zero-quantity batches. Their transactions stay."""
        with transaction.atomic():
            cls.lock_warehouses(warehouse)
            count, _ = Batch.objects.filter(warehouse=warehouse, quantity=0).delete()
            cls.recalculate_total(warehouse)
        if count:
            logger.info(
                "ledger.purge_empty",
                extra={"warehouse": warehouse.code, "purged": count},
            )
        return count

    @classmethod
    def recalculate_total(cls, warehouse: Warehouse) -> int:
        """
        Recompute warehouse.total_items from its positive batch quantities.

        The sum runs after the warehouse row lock, so it sees every
        committed change to the warehouse's batches.

        Returns:
            New total
        """
        with transaction.atomic():
            cls.lock_warehouses(warehouse)
            total = Batch.objects.filter(
                warehouse=warehouse, quantity__gt=0,
            ).aggregate(t=Coalesce(Sum('quantity'), 0, output_field=IntegerField()))['t']

            Warehouse.objects.filter(pk=warehouse.pk).update(
                total_items=total, updated_at=timezone.now(),
            )
        warehouse.total_items = total
        return total

    @classmethod
    def _create(cls, warehouse: Warehouse, code: str, quantity: int, attrs: dict) -> Batch:
        try:
            with transaction.atomic():
                return Batch.objects.create(
                    warehouse=warehouse,
                    code=code,
                    quantity=quantity,
                    product_id=attrs.get('product_id'),
                    product_name=attrs['product_name'],
                    unit=attrs.get('unit', ''),
                    category=attrs.get('category', ''),
                    expiry_date=attrs.get('expiry_date'),
                    reason=attrs.get('reason', ''),
                    created_by=attrs.get('created_by', ''),
                )
        except IntegrityError:
            raise DuplicateBatchError('DUPLICATE_BATCH', warehouse=warehouse.code, code=code)
