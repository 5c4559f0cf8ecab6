"""
Unit tests for the catalog and order history services.
"""
import unittest
from datetime import datetime
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from supplier_replenishment.exceptions import CollaboratorUnavailableError
from supplier_replenishment.services.catalog_service import CatalogService
from supplier_replenishment.services.order_history_service import OrderHistoryService
from supplier_replenishment.tests.base import DatabaseTestCase

class TestCatalogService(DatabaseTestCase):
    """Test cases for CatalogService."""

    def setUp(self):
        """Set up test fixtures."""
        super().setUp()
        self.catalog = CatalogService(self.session)

    def test_get_product(self):
        """Test products are read as records."""
        self.add_product(1, sku='ABC', name='Widget', stock_quantity=7, created_at=datetime(2021, 5, 1))

        product = self.catalog.get_product(1)

        self.assertEqual(product.id, 1)
        self.assertEqual(product.sku, 'ABC')
        self.assertEqual(product.name, 'Widget')
        self.assertEqual(product.stock_quantity, 7)
        self.assertIsNone(product.parent_id)
        self.assertEqual(product.created_at, datetime(2021, 5, 1))
        self.assertFalse(product.is_variation)

    def test_variation_created_at(self):
        """Test variations report the parent's creation date."""
        self.add_product(1, product_type='variable', created_at=datetime(2019, 1, 1))
        self.add_product(2, parent_id=1, product_type='variation', created_at=datetime(2023, 1, 1))

        product = self.catalog.get_product(2)

        self.assertEqual(product.parent_id, 1)
        self.assertEqual(product.created_at, datetime(2019, 1, 1))
        self.assertTrue(product.is_variation)

    def test_missing_product(self):
        """Test missing and invalid products return None."""
        self.assertIsNone(self.catalog.get_product(5))
        self.assertIsNone(self.catalog.get_product(0))

    def test_monthly_cap_key_priority(self):
        """Test the first cap key with a positive value wins."""
        self.add_product(1, meta={
            'max_order_qty_per_month': '8',
            'max_qty_per_month': '5',
        })
        self.add_product(2, meta={
            'max_order_qty_per_month': '0',
            'max_qty_per_month': '',
            'max_order_qty_per month': '12',
        })

        self.assertEqual(self.catalog.get_monthly_cap(1), 8.0)
        self.assertEqual(self.catalog.get_monthly_cap(2), 12.0)

    def test_monthly_cap_parent_fallback(self):
        """Test variations without a cap use the parent's."""
        self.add_product(1, product_type='variable', meta={'max_qty_per_month': '7'})
        self.add_product(2, parent_id=1, product_type='variation')
        self.add_product(3, parent_id=1, product_type='variation', meta={'max_order_qty_per_month': '3'})

        self.assertEqual(self.catalog.get_monthly_cap(2), 7.0)
        self.assertEqual(self.catalog.get_monthly_cap(3), 3.0)

    def test_monthly_cap_missing(self):
        """Test products without a usable cap are uncapped."""
        self.add_product(1, meta={'max_order_qty_per_month': 'lots'})

        self.assertEqual(self.catalog.get_monthly_cap(1), 0.0)
        self.assertEqual(self.catalog.get_monthly_cap(99), 0.0)

    def test_products_for_supplier(self):
        """Test visible products and variations mapped to the supplier are listed."""
        self.add_product(1, supplier_id=4)
        self.add_product(2, supplier_id=4, status='private')
        self.add_product(3, supplier_id=4, status='draft')
        self.add_product(4, supplier_id=5)
        self.add_product(5, meta={'sop_supplier_id': '4'})
        self.add_product(6, parent_id=1, product_type='variation', supplier_id=4)
        self.add_product(7, product_type='grouped', supplier_id=4)

        self.assertEqual(self.catalog.get_products_for_supplier(4), [1, 2, 5, 6])
        self.assertEqual(self.catalog.get_products_for_supplier(0), [])

    def test_zero_stock_products(self):
        """Test stock-managed products at or below zero are listed."""
        self.add_product(1, stock_quantity=0)
        self.add_product(2, stock_quantity=-1)
        self.add_product(3, stock_quantity=None)
        self.add_product(4, stock_quantity=2)
        self.add_product(5, stock_quantity=0, manage_stock=False)

        self.assertEqual([p.id for p in self.catalog.get_zero_stock_products()], [1, 2, 3])

    def test_zero_stock_skips_variable_parents(self):
        """Test variable parents without stock of their own are not listed."""
        self.add_product(1, product_type='variable', stock_quantity=None)
        self.add_product(2, parent_id=1, product_type='variation', stock_quantity=0)
        self.add_product(3, product_type=None, stock_quantity=0)

        self.assertEqual([p.id for p in self.catalog.get_zero_stock_products()], [2, 3])

class TestCatalogServiceFailures(unittest.TestCase):
    """Test cases for data source failures."""

    def test_query_failure_wrapped(self):
        """Test database errors surface as CollaboratorUnavailableError."""
        session = MagicMock()
        session.query.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with self.assertRaises(CollaboratorUnavailableError):
            CatalogService(session).get_product(1)

        with self.assertRaises(CollaboratorUnavailableError):
            OrderHistoryService(session).sum_quantity_sold(1, datetime(2024, 1, 1), datetime(2024, 2, 1))

class TestOrderHistoryService(DatabaseTestCase):
    """Test cases for OrderHistoryService."""

    def setUp(self):
        """Set up test fixtures."""
        super().setUp()
        self.history = OrderHistoryService(self.session)
        self.add_product(1)
        self.add_product(2)

    def test_sum_quantity_sold(self):
        """Test the window is half open and statuses are filtered."""
        self.add_sale(1, 3, datetime(2024, 1, 1))
        self.add_sale(1, 4, datetime(2024, 1, 15))
        self.add_sale(1, 5, datetime(2024, 2, 1))
        self.add_sale(1, 6, datetime(2024, 1, 20), status='refunded')
        self.add_sale(2, 9, datetime(2024, 1, 20))

        total = self.history.sum_quantity_sold(1, datetime(2024, 1, 1), datetime(2024, 2, 1))

        self.assertEqual(total, 7)

    def test_custom_statuses(self):
        """Test only the given statuses count."""
        self.add_sale(1, 3, datetime(2024, 1, 5), status='processing')
        self.add_sale(1, 4, datetime(2024, 1, 6), status='completed')

        total = self.history.sum_quantity_sold(
            1, datetime(2024, 1, 1), datetime(2024, 2, 1), ('completed',)
        )

        self.assertEqual(total, 4)

    def test_invalid_input(self):
        """Test invalid ids and windows sum to zero."""
        self.add_sale(1, 3, datetime(2024, 1, 5))

        self.assertEqual(self.history.sum_quantity_sold(0, datetime(2024, 1, 1), datetime(2024, 2, 1)), 0)
        self.assertEqual(self.history.sum_quantity_sold(1, datetime(2024, 2, 1), datetime(2024, 1, 1)), 0)
        self.assertEqual(self.history.sum_quantity_sold(1, datetime(2024, 1, 1), datetime(2024, 2, 1), ()), 0)

if __name__ == '__main__':
    unittest.main()
