"""
Tests for the transaction log: ids and immutability.
"""

from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.utils import timezone

from batchledger import ledger
from batchledger.exceptions import DuplicateTransactionError
from batchledger.models import Transaction, TransactionType
from batchledger.services.transactions import (
    TransactionLog,
    build_correlation_id,
    build_transaction_id,
)


pytestmark = pytest.mark.django_db


class TestTransactionIds:

    def test_stock_in_id(self, syrup, w1):
        ledger.stock_in(50, syrup, w1, code='B001', reason='New Supply')
        tx = Transaction.objects.get()

        assert tx.id == f"W1-B001-stockIn-New Supply-{tx.timestamp:%Y%m%d}"

    def test_transfer_ids_carry_counterpart_and_time(self, syrup, w1, w2):
        ledger.stock_in(50, syrup, w1, code='B001', reason='New Supply')
        out_tx, in_tx = ledger.transfer(10, w1, w2, 'B001')

        stamp = out_tx.timestamp.astimezone(dt_timezone.utc).strftime('%Y%m%d-%H%M%S')
        assert out_tx.id == f"W1-B001-transferOut-W2-{stamp}"
        assert in_tx.id == f"W2-B001-transferIn-W1-{stamp}"
        assert out_tx.correlation_id == f"W1-W2-B001-{stamp}"

    def test_deterministic(self):
        ts = datetime(2026, 3, 14, 9, 26, 53, tzinfo=dt_timezone.utc)

        first = build_transaction_id('W1', 'B001', TransactionType.STOCK_OUT, 'Used', ts)
        second = build_transaction_id('W1', 'B001', TransactionType.STOCK_OUT, 'Used', ts)

        assert first == second == 'W1-B001-stockOut-Used-20260314'

    def test_uses_utc_date(self):
        # 23:30 at UTC-3 is already the next day in UTC
        ts = datetime(2026, 3, 14, 23, 30, tzinfo=dt_timezone(timedelta(hours=-3)))

        assert build_transaction_id('W1', 'B001', TransactionType.EDIT, 'Recount', ts) == (
            'W1-B001-edit-Recount-20260315'
        )
        assert build_transaction_id(
            'W1', 'B001', TransactionType.TRANSFER_IN, 'W2', ts,
        ) == 'W1-B001-transferIn-W2-20260315-023000'

    def test_time_can_be_forced(self):
        ts = datetime(2026, 3, 14, 9, 26, 53, tzinfo=dt_timezone.utc)

        assert build_transaction_id(
            'W1', 'B001', TransactionType.STOCK_IN, 'New Supply', ts, with_time=True,
        ) == 'W1-B001-stockIn-New Supply-20260314-092653'
        assert build_correlation_id('W1', 'W2', 'B001', ts) == 'W1-W2-B001-20260314-092653'


class TestCollisions:

    def test_resolve_id_policy(self, syrup, w1):
        ledger.stock_in(5, syrup, w1, code='B001', reason='New Supply')
        tx = ledger.stock_out(1, w1, 'B001', reason='Used')

        assert TransactionLog.resolve_id('W1-unused', reject=True) == 'W1-unused'
        assert TransactionLog.resolve_id(tx.id, reject=False) == f'{tx.id}-2'
        with pytest.raises(DuplicateTransactionError) as exc:
            TransactionLog.resolve_id(tx.id, reject=True)
        assert exc.value.data['transaction_id'] == tx.id

    def test_lost_insert_race_is_a_duplicate(self, syrup, w1):
        # Two writers resolved the same free id; the second insert must not leak an IntegrityError
        batch = ledger.stock_in(5, syrup, w1, code='B001', reason='New Supply')
        tx_id = TransactionLog.resolve_id('W1-B001-stockOut-Used-20260314')
        append = dict(
            tx_type=TransactionType.STOCK_OUT, warehouse=w1, batch=batch,
            quantity=1, reason='Used', timestamp=timezone.now(),
        )
        TransactionLog.append(tx_id, **append)

        with pytest.raises(DuplicateTransactionError) as exc:
            TransactionLog.append(tx_id, **append)

        assert exc.value.data['transaction_id'] == tx_id
        assert Transaction.objects.filter(type=TransactionType.STOCK_OUT).count() == 1


class TestImmutability:

    def test_cannot_update(self, syrup, w1):
        ledger.stock_in(50, syrup, w1, code='B001', reason='New Supply')
        tx = Transaction.objects.get()
        tx.quantity = 5

        with pytest.raises(ValueError):
            tx.save()

        assert Transaction.objects.get().quantity == 50

    def test_cannot_delete(self, syrup, w1):
        ledger.stock_in(50, syrup, w1, code='B001', reason='New Supply')

        with pytest.raises(ValueError):
            Transaction.objects.get().delete()

        assert Transaction.objects.count() == 1

    def test_reason_required(self, w1):
        tx = Transaction(
            id='manual', type=TransactionType.STOCK_IN, warehouse=w1,
            product_name='Vanilla Syrup', code='B001', quantity=1, reason='',
        )

        with pytest.raises(ValueError):
            tx.save()

    def test_log_only_grows(self, syrup, w1, w2):
        ledger.stock_in(50, syrup, w1, code='B001', reason='New Supply')
        seen = set(Transaction.objects.values_list('pk', flat=True))

        ledger.stock_out(5, w1, 'B001', reason='Used')
        ledger.transfer(5, w1, w2, 'B001')
        ledger.edit(w1, 'B001', quantity=30, reason='Recount')

        after = set(Transaction.objects.values_list('pk', flat=True))
        assert seen < after
        assert len(after) == 5
        assert ledger.history(w1).count() == 4

    def test_transaction_record_shape(self, syrup, w1, w2):
        ledger.stock_in(50, syrup, w1, code='B001', reason='New Supply')
        out_tx, _ = ledger.transfer(5, w1, w2, 'B001')

        record = out_tx.as_record()
        assert record['type'] == 'transferOut'
        assert record['warehouse'] == 'W1'
        assert record['counterpartWarehouse'] == 'W2'
        assert record['quantity'] == 5
        assert Transaction.objects.get(type='stockIn').as_record()['correlationId'] is None
