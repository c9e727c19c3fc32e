"""
Pytest fixtures for BatchLedger tests.
"""

from datetime import date, timedelta

import pytest
from django.contrib.auth import get_user_model

from batchledger.models import Product, Warehouse, WarehouseCategory


User = get_user_model()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='barista',
        password='testpass123',
        first_name='Ana',
        last_name='Lima',
    )


@pytest.fixture
def syrup(db):
    """Product with no threshold of its own (system default applies)."""
    return Product.objects.create(
        name='Vanilla Syrup',
        category='Syrups',
        unit='bottle',
    )


@pytest.fixture
def beans(db):
    """Product with its own low-stock threshold."""
    return Product.objects.create(
        name='Espresso Beans',
        category='Coffee',
        unit='kg',
        low_stock_threshold=5,
    )


@pytest.fixture
def w1(db):
    return Warehouse.objects.create(
        code='W1',
        name='Main Storage',
        location='Back room',
        category=WarehouseCategory.STORAGE,
    )


@pytest.fixture
def w2(db):
    return Warehouse.objects.create(
        code='W2',
        name='Front Shop',
        category=WarehouseCategory.CUSTOMER,
    )


@pytest.fixture
def w3(db):
    return Warehouse.objects.create(
        code='W3',
        name='Kitchen',
        category=WarehouseCategory.PRODUCTION,
    )


@pytest.fixture
def reject_duplicates(settings):
    """Refuse a repeated identical submission instead of suffixing its id."""
    settings.BATCHLEDGER = {'TRANSACTION_ID_COLLISION': 'reject'}


@pytest.fixture
def saga_transfers(settings):
    """Run transfers through persisted intents instead of one DB transaction."""
    settings.BATCHLEDGER = {'ATOMIC_TRANSFERS': False}


@pytest.fixture
def today():
    return date.today()


@pytest.fixture
def next_month():
    return date.today() + timedelta(days=30)
