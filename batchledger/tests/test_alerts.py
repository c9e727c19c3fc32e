"""
Tests for low-stock evaluation.
"""

import pytest

from batchledger import ledger
from batchledger.models import LowStockSetting
from batchledger.services.alerts import LowStockAlert, coerce_threshold


pytestmark = pytest.mark.django_db


class TestEvaluate:
    """Tests for ledger.evaluate()."""

    def test_one_alert_per_contributing_batch(self, syrup, w1):
        ledger.stock_in(6, syrup, w1, code='B001', reason='New Supply')
        ledger.stock_in(4, syrup, w1, code='B002', reason='New Supply')

        alerts = ledger.evaluate(w1)

        assert alerts == [
            LowStockAlert('W1', 'Main Storage', 'Vanilla Syrup', 'B001', 6, 10, 10),
            LowStockAlert('W1', 'Main Storage', 'Vanilla Syrup', 'B002', 4, 10, 10),
        ]

    def test_threshold_boundary(self, syrup, w1):
        ledger.stock_in(11, syrup, w1, code='B001', reason='New Supply')
        assert ledger.evaluate(w1) == []

        ledger.stock_out(1, w1, 'B001', reason='Used')
        assert len(ledger.evaluate(w1)) == 1

    def test_empty_batches_ignored(self, syrup, w1):
        ledger.stock_in(5, syrup, w1, code='B001', reason='New Supply')
        ledger.stock_in(20, syrup, w1, code='B002', reason='New Supply')
        ledger.stock_out(5, w1, 'B001', reason='Used')

        assert ledger.evaluate(w1) == []

        ledger.stock_out(12, w1, 'B002', reason='Used')
        assert [a.code for a in ledger.evaluate(w1)] == ['B002']

    def test_product_threshold(self, beans, w1):
        ledger.stock_in(6, beans, w1, code='C001', reason='New Supply')
        assert ledger.evaluate(w1) == []

        ledger.stock_out(1, w1, 'C001', reason='Used')
        assert ledger.evaluate(w1)[0].threshold == 5

    def test_warehouse_override(self, syrup, w1, w2):
        LowStockSetting.objects.create(warehouse=w1, product=syrup, threshold=25)
        ledger.stock_in(20, syrup, w1, code='B001', reason='New Supply')
        ledger.stock_in(20, syrup, w2, code='B001', reason='New Supply')

        alerts = ledger.evaluate()

        assert [(a.warehouse, a.threshold) for a in alerts] == [('W1', 25)]

    def test_configured_default(self, syrup, w1, settings):
        settings.BATCHLEDGER = {'DEFAULT_LOW_STOCK_THRESHOLD': 3}
        ledger.stock_in(5, syrup, w1, code='B001', reason='New Supply')

        assert ledger.evaluate(w1) == []

    def test_non_numeric_default_falls_back(self, syrup, w1, settings):
        settings.BATCHLEDGER = {'DEFAULT_LOW_STOCK_THRESHOLD': 'plenty'}
        ledger.stock_in(10, syrup, w1, code='B001', reason='New Supply')

        assert ledger.evaluate(w1)[0].threshold == 10

    def test_all_warehouses_ordered(self, syrup, beans, w1, w2):
        ledger.stock_in(2, syrup, w2, code='Z', reason='New Supply')
        ledger.stock_in(2, syrup, w1, code='B', reason='New Supply')
        ledger.stock_in(2, beans, w1, code='A', reason='New Supply')

        keys = [(a.warehouse, a.product, a.code) for a in ledger.evaluate()]

        assert keys == [
            ('W1', 'Espresso Beans', 'A'),
            ('W1', 'Vanilla Syrup', 'B'),
            ('W2', 'Vanilla Syrup', 'Z'),
        ]

    def test_follows_transfers(self, syrup, w1, w2):
        ledger.stock_in(30, syrup, w1, code='B001', reason='New Supply')
        ledger.transfer(25, w1, w2, 'B001')

        assert [a.warehouse for a in ledger.evaluate()] == ['W1']


class TestLowStockProducts:

    def test_one_entry_per_product(self, syrup, w1):
        ledger.stock_in(6, syrup, w1, code='B001', reason='New Supply')
        ledger.stock_in(4, syrup, w1, code='B002', reason='New Supply')

        assert ledger.low_stock_products('W1') == [('W1', 'Vanilla Syrup', 10, 10)]


class TestCoerceThreshold:

    @pytest.mark.parametrize('value,expected', [
        (7, 7),
        ('7', 7),
        (' 12 ', 12),
        (4.0, 4),
        (None, 10),
        (True, 10),
        ('abc', 10),
        (float('nan'), 10),
    ])
    def test_coerce(self, value, expected):
        assert coerce_threshold(value, 10) == expected
