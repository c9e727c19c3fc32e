"""
Ledger queries — read-only operations.

No locking. Reads are not linearizable with concurrent writes: a read on
one connection may not yet see a write committed on another.
"""

from datetime import date

from django.db.models import IntegerField, Sum
from django.db.models.functions import Coalesce

from batchledger.models.batch import Batch
from batchledger.services.registry import Registry


class LedgerQueries:
    """Read-only batch store methods."""

    @classmethod
    def get(cls, warehouse) -> list[Batch]:
        """All batches of a warehouse, empty ones included."""
        wh = Registry.get_warehouse(warehouse)
        return list(Batch.objects.in_warehouse(wh).order_by('code'))

    @classmethod
    def get_by_code(cls, warehouse, code: str) -> Batch | None:
        """Get a batch by its (warehouse, code) key."""
        wh = Registry.get_warehouse(warehouse)
        return Batch.objects.filter(warehouse=wh, code=(code or '').strip()).first()

    @classmethod
    def list_batches(cls, warehouse=None, product=None,
                     include_empty: bool = False):
        """List batches with filters. Empty batches are hidden by default."""
        qs = Batch.objects.select_related('warehouse')

        if warehouse is not None:
            qs = qs.in_warehouse(Registry.get_warehouse(warehouse))

        if product is not None:
            qs = qs.for_product(product)

        if not include_empty:
            qs = qs.held()

        return qs

    @classmethod
    def product_totals(cls, warehouse) -> dict[str, int]:
        """Sum of positive quantities per product name in a warehouse."""
        wh = Registry.get_warehouse(warehouse)
        rows = (
            Batch.objects.in_warehouse(wh).held()
            .values('product_name')
            .annotate(total=Sum('quantity'))
            .order_by('product_name')
        )
        return {row['product_name']: row['total'] for row in rows}

    @classmethod
    def code_total(cls, code: str) -> int:
        """Quantity of one batch code summed across every warehouse."""
        return Batch.objects.filter(code=code).aggregate(
            t=Coalesce(Sum('quantity'), 0, output_field=IntegerField())
        )['t']

    @classmethod
    def expiring(cls, before: date, warehouse=None):
        """Held batches expiring on or before a date, soonest first."""
        qs = cls.list_batches(warehouse=warehouse).expiring_before(before)
        return qs.order_by('expiry_date', 'code')
