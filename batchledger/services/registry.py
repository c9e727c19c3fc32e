"""
Warehouse registry and product catalog — read-only lookups.

The ledger never mutates warehouses or products, apart from the
total_items cache kept by the batch store. Every lookup accepts either a
model instance or its key (warehouse code, product name).
"""

from batchledger.exceptions import NotFoundError
from batchledger.models.alert import LowStockSetting
from batchledger.models.product import Product
from batchledger.models.warehouse import Warehouse


class Registry:
    """Lookup methods for warehouses and products."""

    @classmethod
    def get_warehouse(cls, warehouse) -> Warehouse:
        """
        Resolve a warehouse instance or code.

        Raises:
            NotFoundError('WAREHOUSE_NOT_FOUND')
        """
        if isinstance(warehouse, Warehouse):
            return warehouse
        try:
            return Warehouse.objects.get(code=warehouse)
        except Warehouse.DoesNotExist:
            raise NotFoundError('WAREHOUSE_NOT_FOUND', warehouse=warehouse)

    @classmethod
    def list_warehouses(cls, status: str | None = None):
        qs = Warehouse.objects.all()
        if status is not None:
            qs = qs.filter(status=status)
        return qs

    @classmethod
    def get_product(cls, product) -> Product:
        """
        Resolve a product instance or name.

        Raises:
            NotFoundError('PRODUCT_NOT_FOUND')
        """
        if isinstance(product, Product):
            return product
        try:
            return Product.objects.get(name=product)
        except Product.DoesNotExist:
            raise NotFoundError('PRODUCT_NOT_FOUND', product=product)

    @classmethod
    def list_products(cls):
        return Product.objects.all()

    @classmethod
    def thresholds_for(cls, warehouse: Warehouse) -> dict[str, int]:
        """Per-warehouse overrides keyed by product name."""
        return dict(
            LowStockSetting.objects.filter(warehouse=warehouse)
            .values_list('product__name', 'threshold')
        )
