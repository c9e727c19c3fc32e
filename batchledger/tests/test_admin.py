"""
Tests for the operator admin.
"""

import pytest
from django.contrib import admin
from django.test import RequestFactory

from batchledger import ledger
from batchledger.admin import TransferIntentAdmin, WarehouseAdmin
from batchledger.models import TransferIntent, TransferStatus, Warehouse
from batchledger.services.movements import LedgerMovements


pytestmark = pytest.mark.django_db


def _fail(cls, *args, **kwargs):
    raise RuntimeError('destination unavailable')


class TestWarehouseAdmin:

    def test_code_locked_after_creation(self, w1):
        model_admin = WarehouseAdmin(Warehouse, admin.site)
        request = RequestFactory().get('/')

        assert 'code' not in model_admin.get_readonly_fields(request)
        assert 'code' in model_admin.get_readonly_fields(request, w1)
        assert 'total_items' in model_admin.get_readonly_fields(request, w1)


class TestTransferIntentAdmin:

    def test_resume_action(self, syrup, w1, w2, saga_transfers, monkeypatch):
        ledger.stock_in(50, syrup, w1, code='B001', reason='New Supply')
        monkeypatch.setattr(LedgerMovements, '_credit_destination', classmethod(_fail))
        with pytest.raises(Exception):
            ledger.transfer(30, w1, w2, 'B001')
        monkeypatch.undo()

        model_admin = TransferIntentAdmin(TransferIntent, admin.site)
        messages = []
        monkeypatch.setattr(model_admin, 'message_user', lambda request, msg: messages.append(str(msg)))

        model_admin.resume_transfers(RequestFactory().post('/'), TransferIntent.objects.all())

        assert TransferIntent.objects.get().status == TransferStatus.COMPLETED
        assert ledger.get_by_code(w2, 'B001').quantity == 30
        assert messages == ['1 transfer(s) resumed.']
