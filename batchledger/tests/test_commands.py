"""
Tests for management commands.
"""

from io import StringIO

import pytest
from django.core.management import call_command

from batchledger import ledger
from batchledger.models import TransferIntent, TransferStatus, Warehouse
from batchledger.services.movements import LedgerMovements


pytestmark = pytest.mark.django_db


def _fail(cls, *args, **kwargs):
    raise RuntimeError('destination unavailable')


def _run(*args):
    out = StringIO()
    call_command(*args, stdout=out, stderr=StringIO())
    return out.getvalue()


class TestReconcileTransfers:

    @pytest.fixture
    def partial(self, syrup, w1, w2, saga_transfers, monkeypatch):
        ledger.stock_in(50, syrup, w1, code='B001', reason='New Supply')
        monkeypatch.setattr(LedgerMovements, '_credit_destination', classmethod(_fail))
        with pytest.raises(Exception):
            ledger.transfer(30, w1, w2, 'B001')
        monkeypatch.undo()

    def test_dry_run(self, partial, w2):
        output = _run('reconcile_transfers', '--dry-run')

        assert '1 transfer(s) would be resumed' in output
        assert TransferIntent.objects.get().status == TransferStatus.DEBITED
        assert ledger.get_by_code(w2, 'B001') is None

    def test_resumes(self, partial, w2):
        output = _run('reconcile_transfers')

        assert '1 transfer(s) resumed' in output
        assert TransferIntent.objects.get().status == TransferStatus.COMPLETED
        assert ledger.get_by_code(w2, 'B001').quantity == 30

    def test_nothing_outstanding(self):
        assert '0 transfer(s) resumed' in _run('reconcile_transfers')


class TestCheckLowStock:

    def test_reports_products(self, syrup, w1, w2):
        ledger.stock_in(4, syrup, w1, code='B001', reason='New Supply')
        ledger.stock_in(40, syrup, w2, code='B001', reason='New Supply')

        output = _run('check_low_stock')

        assert 'W1\tVanilla Syrup\t4 <= 10' in output
        assert 'W2' not in output

    def test_batches_for_one_warehouse(self, syrup, w1):
        ledger.stock_in(4, syrup, w1, code='B001', reason='New Supply')
        ledger.stock_in(3, syrup, w1, code='B002', reason='New Supply')

        output = _run('check_low_stock', '--warehouse', 'W1', '--batches')

        assert '2 low-stock line(s)' in output

    def test_no_low_stock(self, syrup, w1):
        ledger.stock_in(40, syrup, w1, code='B001', reason='New Supply')

        assert 'No low stock' in _run('check_low_stock')


class TestRecalculateTotals:

    def test_repairs_drift(self, syrup, w1):
        ledger.stock_in(40, syrup, w1, code='B001', reason='New Supply')
        Warehouse.objects.filter(pk=w1.pk).update(total_items=7)

        output = _run('recalculate_totals')

        assert 'W1: 7 -> 40' in output
        w1.refresh_from_db()
        assert w1.total_items == 40
