"""
Management command to recompute Warehouse.total_items from batches.

Usage:
    python manage.py recalculate_totals
"""

from django.core.management.base import BaseCommand

from batchledger import ledger


class Command(BaseCommand):

    help = 'Recomputes the total item count of every warehouse'

    def handle(self, *args, **options):
        for warehouse in ledger.list_warehouses():
            old = warehouse.total_items
            new = ledger.recalculate_total(warehouse)
            if old != new:
                self.stdout.write(f'{warehouse.code}: {old} -> {new}')
        self.stdout.write(self.style.SUCCESS('Totals recalculated'))
