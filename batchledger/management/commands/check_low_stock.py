"""
Management command to list low-stock products.

Usage:
    python manage.py check_low_stock
    python manage.py check_low_stock --warehouse W1
    python manage.py check_low_stock --batches
"""

from django.core.management.base import BaseCommand

from batchledger import ledger


class Command(BaseCommand):

    help = 'Lists products at or below their low-stock threshold'

    def add_arguments(self, parser):
        parser.add_argument('--warehouse', help='Only this warehouse code')
        parser.add_argument(
            '--batches',
            action='store_true',
            help='One line per contributing batch instead of per product'
        )

    def handle(self, *args, **options):
        warehouse = options['warehouse']

        if options['batches']:
            alerts = ledger.evaluate(warehouse)
            for a in alerts:
                self.stdout.write(
                    f'{a.warehouse}\t{a.product}\t{a.code}\t{a.quantity}'
                    f'\t(total {a.total} <= {a.threshold})'
                )
            count = len(alerts)
        else:
            rows = ledger.low_stock_products(warehouse)
            for wh, product, total, threshold in rows:
                self.stdout.write(f'{wh}\t{product}\t{total} <= {threshold}')
            count = len(rows)

        if count:
            self.stdout.write(self.style.WARNING(f'{count} low-stock line(s)'))
        else:
            self.stdout.write(self.style.SUCCESS('No low stock'))
