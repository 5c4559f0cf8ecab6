"""
Unit tests for the forecast engine.
"""
import unittest
from datetime import date, datetime
from unittest.mock import MagicMock

from supplier_replenishment.exceptions import ComputationError
from supplier_replenishment.records import DemandSummary, ProductRecord, SupplierPolicy
from supplier_replenishment.services.forecast_service import ForecastEngine, build_forecast_engine
from supplier_replenishment.tests.base import DatabaseTestCase

def make_summary(product_id, demand_per_day, qty_sold=0):
    return DemandSummary(
        product_id=product_id,
        qty_sold=qty_sold,
        total_days=365.0,
        days_on_sale=365.0,
        demand_per_day=demand_per_day
    )

class TestForecastProduct(unittest.TestCase):
    """Test cases for single product forecasts."""

    def setUp(self):
        """Set up test fixtures."""
        self.catalog = MagicMock()
        self.catalog.get_monthly_cap.return_value = 0.0
        self.resolver = MagicMock()
        self.summarizer = MagicMock()
        self.summarizer.summarize.return_value = make_summary(1, 3.0, qty_sold=1095)

        self.engine = ForecastEngine(self.catalog, self.resolver, self.summarizer)
        self.product = ProductRecord(id=1, sku='SKU001', name='Widget', stock_quantity=50)

    def test_lead_and_buffer_scenario(self):
        """Test the suggested quantity covers the buffer after lead time."""
        policy = SupplierPolicy(supplier_id=1, lead_time_weeks=4, buffer_months=2.0)

        row = self.engine.forecast_product(self.product, policy)

        self.assertEqual(row.lead_days, 28)
        self.assertAlmostEqual(row.buffer_days, 60.875)
        self.assertAlmostEqual(row.lead_demand, 84.0)
        self.assertAlmostEqual(row.demand_during_lead, 84.0)
        self.assertEqual(row.stock_at_arrival, 0.0)
        self.assertAlmostEqual(row.buffer_target, 182.625)
        self.assertAlmostEqual(row.suggested_raw, 182.625)
        self.assertEqual(row.suggested_capped, row.suggested_raw)
        self.assertEqual(row.inbound_qty, 0.0)
        self.assertEqual(row.max_for_cycle, 0.0)
        self.assertEqual(row.qty_sold, 1095)
        self.assertEqual(row.sku, 'SKU001')

    def test_summary_uses_policy_lookback(self):
        """Test the summarizer gets the policy lookback by default."""
        policy = SupplierPolicy(supplier_id=1, lookback_days=90)

        self.engine.forecast_product(self.product, policy, as_of_date=date(2024, 6, 30))

        self.summarizer.summarize.assert_called_once_with(1, 90, date(2024, 6, 30))

    def test_cap_scenario(self):
        """Test the monthly cap limits the suggested quantity."""
        self.catalog.get_monthly_cap.return_value = 10.0
        self.summarizer.summarize.return_value = make_summary(1, 50 / 91.3125)
        product = ProductRecord(id=1, stock_quantity=0)
        policy = SupplierPolicy(supplier_id=1, buffer_months=3.0)

        row = self.engine.forecast_product(product, policy)

        self.assertAlmostEqual(row.suggested_raw, 50.0)
        self.assertEqual(row.effective_cycle_months, 3.0)
        self.assertEqual(row.max_for_cycle, 30.0)
        self.assertEqual(row.suggested_capped, 30.0)
        self.assertLessEqual(row.suggested_capped, row.suggested_raw)

    def test_cap_uses_order_cycle_without_buffer(self):
        """Test the order cycle is the cap horizon when there is no buffer."""
        self.catalog.get_monthly_cap.return_value = 10.0
        policy = SupplierPolicy(supplier_id=1, lead_time_weeks=4, buffer_months=0.0)

        row = self.engine.forecast_product(self.product, policy, order_cycle_months=4.0)

        self.assertEqual(row.effective_cycle_months, 4.0)
        self.assertEqual(row.max_for_cycle, 40.0)
        self.assertEqual(row.suggested_raw, 0.0)
        self.assertEqual(row.suggested_capped, 0.0)

    def test_cap_below_raw_only(self):
        """Test a cap above the raw quantity changes nothing."""
        self.catalog.get_monthly_cap.return_value = 1000.0
        policy = SupplierPolicy(supplier_id=1, lead_time_weeks=4, buffer_months=2.0)

        row = self.engine.forecast_product(self.product, policy)

        self.assertEqual(row.max_for_cycle, 2000.0)
        self.assertEqual(row.suggested_capped, row.suggested_raw)

    def test_negative_stock(self):
        """Test negative stock is reported and used as zero."""
        product = ProductRecord(id=1, stock_quantity=-5)
        policy = SupplierPolicy(supplier_id=1, buffer_months=1.0)

        row = self.engine.forecast_product(product, policy)

        self.assertEqual(row.current_stock, 0)
        self.assertEqual(row.stock_at_arrival, 0.0)

    def test_no_sales(self):
        """Test a product without demand needs no order."""
        self.summarizer.summarize.return_value = make_summary(1, 0.0)
        policy = SupplierPolicy(supplier_id=1, lead_time_weeks=4, buffer_months=6.0)

        row = self.engine.forecast_product(ProductRecord(id=1), policy)

        self.assertEqual(row.days_on_sale, 365.0)
        self.assertEqual(row.demand_per_day, 0.0)
        self.assertEqual(row.suggested_raw, row.buffer_target)
        self.assertEqual(row.suggested_raw, 0.0)

    def test_cap_failure_is_uncapped(self):
        """Test an unreadable monthly cap leaves the quantity uncapped."""
        self.catalog.get_monthly_cap.side_effect = RuntimeError("meta table missing")
        policy = SupplierPolicy(supplier_id=1, lead_time_weeks=4, buffer_months=2.0)

        row = self.engine.forecast_product(self.product, policy)

        self.assertEqual(row.max_per_month, 0.0)
        self.assertEqual(row.suggested_capped, row.suggested_raw)

    def test_non_finite_velocity(self):
        """Test a non-finite result raises ComputationError."""
        self.summarizer.summarize.return_value = make_summary(1, float('inf'))
        policy = SupplierPolicy(supplier_id=1, lead_time_weeks=4, buffer_months=2.0)

        with self.assertRaises(ComputationError):
            self.engine.forecast_product(self.product, policy)

    def test_row_dict(self):
        """Test rows convert to plain dictionaries."""
        policy = SupplierPolicy(supplier_id=1, lead_time_weeks=4, buffer_months=2.0)
        row = self.engine.forecast_product(self.product, policy)
        row.extra['note'] = 'reviewed'

        data = row.to_dict()

        self.assertEqual(data['product_id'], 1)
        self.assertEqual(data['demand_during_lead'], data['lead_demand'])
        self.assertEqual(data['note'], 'reviewed')
        self.assertNotIn('extra', data)

class TestForecastSupplier(unittest.TestCase):
    """Test cases for supplier-wide forecasts."""

    def setUp(self):
        """Set up test fixtures."""
        self.catalog = MagicMock()
        self.catalog.get_monthly_cap.return_value = 0.0
        self.catalog.get_products_for_supplier.return_value = [1, 2, 3]
        self.catalog.get_product.side_effect = lambda product_id: ProductRecord(
            id=product_id, sku=f"SKU{product_id}", stock_quantity=10
        )

        self.policy = SupplierPolicy(supplier_id=5, lead_time_weeks=2, buffer_months=1.0)
        self.resolver = MagicMock()
        self.resolver.resolve.return_value = self.policy
        self.resolver.order_cycle_months.return_value = 6.0

        self.summarizer = MagicMock()
        self.summarizer.summarize.side_effect = lambda product_id, *args: make_summary(product_id, 1.0)

        self.engine = ForecastEngine(self.catalog, self.resolver, self.summarizer)

    def test_forecast_all_products(self):
        """Test every product of the supplier gets a row."""
        rows = self.engine.forecast_supplier(5, as_of_date=date(2024, 6, 30))

        self.assertEqual([row.product_id for row in rows], [1, 2, 3])
        self.resolver.resolve.assert_called_once_with(5)
        self.catalog.get_products_for_supplier.assert_called_once_with(5)

    def test_unknown_supplier(self):
        """Test an unknown supplier yields no rows."""
        self.resolver.resolve.return_value = SupplierPolicy(supplier_id=None)

        self.assertEqual(self.engine.forecast_supplier(5), [])
        self.catalog.get_products_for_supplier.assert_not_called()

    def test_invalid_supplier_id(self):
        """Test invalid supplier ids yield no rows."""
        self.assertEqual(self.engine.forecast_supplier(0), [])
        self.assertEqual(self.engine.forecast_supplier('abc'), [])
        self.resolver.resolve.assert_not_called()

    def test_missing_product_skipped(self):
        """Test products that cannot be loaded are skipped."""
        self.catalog.get_product.side_effect = lambda product_id: (
            None if product_id == 2 else ProductRecord(id=product_id)
        )

        rows = self.engine.forecast_supplier(5)

        self.assertEqual([row.product_id for row in rows], [1, 3])

    def test_product_failure_isolated(self):
        """Test a failure on one product does not stop the others."""
        def summarize(product_id, *args):
            if product_id == 2:
                raise ValueError("corrupt order data")
            return make_summary(product_id, 1.0)

        self.summarizer.summarize.side_effect = summarize

        rows = self.engine.forecast_supplier(5)

        self.assertEqual([row.product_id for row in rows], [1, 3])

    def test_row_processors(self):
        """Test processors run in order on the finished rows."""
        calls = []

        def tag_rows(rows, supplier_id, policy):
            calls.append(('tag', supplier_id, policy))
            for row in rows:
                row.extra['supplier_id'] = supplier_id
            return rows

        def drop_first(rows, supplier_id, policy):
            calls.append(('drop', supplier_id, policy))
            return rows[1:]

        self.engine.add_row_processor(tag_rows)
        self.engine.add_row_processor(drop_first)

        rows = self.engine.forecast_supplier(5)

        self.assertEqual([row.product_id for row in rows], [2, 3])
        self.assertEqual(rows[0].extra['supplier_id'], 5)
        self.assertEqual(calls, [('tag', 5, self.policy), ('drop', 5, self.policy)])

    def test_failing_processor_skipped(self):
        """Test a failing processor is skipped and the rows are kept."""
        def broken(rows, supplier_id, policy):
            raise RuntimeError("hook failed")

        engine = ForecastEngine(self.catalog, self.resolver, self.summarizer, row_processors=[broken])

        rows = engine.forecast_supplier(5)

        self.assertEqual(len(rows), 3)

class TestForecastDatabase(DatabaseTestCase):
    """End to end forecast over the database services."""

    def test_forecast_supplier(self):
        """Test suggested quantities for a supplier's catalog."""
        self.add_settings(buffer_months_global=2.0, analysis_lookback_days=365)
        self.add_supplier(1, lead_time_weeks=4)
        self.add_supplier(2)

        self.add_product(10, supplier_id=1, stock_quantity=50)
        self.add_sale(10, 1095, datetime(2024, 3, 1))

        self.add_product(11, supplier_id=1, stock_quantity=0, meta={'max_qty_per_month': '10'})
        self.add_sale(11, 1095, datetime(2024, 3, 1))

        self.add_product(12, supplier_id=1, status='draft')
        self.add_product(13, supplier_id=2)

        engine = build_forecast_engine(self.session)
        rows = engine.forecast_supplier(1, as_of_date=date(2024, 6, 30))

        self.assertEqual([row.product_id for row in rows], [10, 11])

        first, second = rows
        self.assertAlmostEqual(first.demand_per_day, 3.0)
        self.assertEqual(first.lead_days, 28)
        self.assertAlmostEqual(first.suggested_raw, 182.625)
        self.assertAlmostEqual(first.suggested_capped, 182.625)

        self.assertEqual(second.max_per_month, 10.0)
        self.assertEqual(second.effective_cycle_months, 2.0)
        self.assertEqual(second.max_for_cycle, 20.0)
        self.assertAlmostEqual(second.suggested_raw, 182.625)
        self.assertEqual(second.suggested_capped, 20.0)

    def test_forecast_unknown_supplier(self):
        """Test an unknown supplier yields no rows."""
        self.add_product(10, supplier_id=9)

        self.assertEqual(build_forecast_engine(self.session).forecast_supplier(9), [])

if __name__ == '__main__':
    unittest.main()
