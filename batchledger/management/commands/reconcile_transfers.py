"""
Management command to reconcile transfers left half-applied.

A transfer run with ATOMIC_TRANSFERS = False that debited its source but
failed to credit its destination stays DEBITED until this command (or a
call to ledger.resume_transfer) credits the destination.

Usage:
    python manage.py reconcile_transfers
    python manage.py reconcile_transfers --dry-run
"""

from django.core.management.base import BaseCommand

from batchledger import ledger
from batchledger.exceptions import LedgerError
from batchledger.models import TransferIntent


class Command(BaseCommand):
    """Resume outstanding transfer intents."""

    help = 'Credits the destination of transfers whose source was debited'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List outstanding transfers without applying them'
        )

    def handle(self, *args, **options):
        outstanding = TransferIntent.objects.outstanding().select_related('source', 'destination')

        if options['dry_run']:
            for intent in outstanding:
                self.stdout.write(f'#{intent.pk} {intent}')
            self.stdout.write(f'{outstanding.count()} transfer(s) would be resumed')
            return

        resumed = failed = 0
        for intent in outstanding:
            try:
                ledger.resume_transfer(intent.pk)
            except LedgerError as e:
                failed += 1
                self.stderr.write(f'#{intent.pk} {intent}: {e}')
            else:
                resumed += 1

        self.stdout.write(self.style.SUCCESS(f'{resumed} transfer(s) resumed'))
        if failed:
            self.stdout.write(self.style.WARNING(f'{failed} transfer(s) need manual review'))
