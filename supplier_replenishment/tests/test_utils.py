"""
Unit tests for validation helpers and the error hierarchy.
"""
import unittest
from datetime import datetime

from supplier_replenishment.exceptions import (
    CollaboratorUnavailableError, InvalidInputError, SupplierReplenishmentError
)
from supplier_replenishment.records import SupplierRecord
from supplier_replenishment.services.supplier_service import normalize_currency
from supplier_replenishment.utils.date_utils import parse_datetime
from supplier_replenishment.utils.math_utils import clamp, to_float, to_int
from supplier_replenishment.utils.validation import (
    is_valid_window, normalize_id, require_id, validate_supplier
)

class TestValidation(unittest.TestCase):
    """Test cases for id and window validation."""

    def test_normalize_id(self):
        """Test ids are coerced to positive ints or zero."""
        self.assertEqual(normalize_id(5), 5)
        self.assertEqual(normalize_id('12'), 12)
        self.assertEqual(normalize_id(-1), 0)
        self.assertEqual(normalize_id(None), 0)
        self.assertEqual(normalize_id('abc'), 0)

    def test_require_id(self):
        """Test invalid ids raise InvalidInputError."""
        self.assertEqual(require_id('7', 'supplier_id'), 7)

        with self.assertRaises(InvalidInputError) as context:
            require_id('x', 'supplier_id')

        self.assertEqual(context.exception.details, {'supplier_id': 'x'})

    def test_is_valid_window(self):
        """Test empty and unset windows are invalid."""
        start = datetime(2024, 1, 1)
        end = datetime(2024, 2, 1)

        self.assertTrue(is_valid_window(start, end))
        self.assertFalse(is_valid_window(end, start))
        self.assertFalse(is_valid_window(start, start))
        self.assertFalse(is_valid_window(None, end))

    def test_validate_supplier(self):
        """Test negative supplier values are reported."""
        errors = validate_supplier(SupplierRecord(
            id=1, lead_time_weeks=-1, holiday_extra_days=-2, buffer_months_override=-3
        ))

        self.assertEqual(
            set(errors), {'lead_time_weeks', 'holiday_extra_days', 'buffer_months_override'}
        )
        self.assertEqual(validate_supplier(SupplierRecord(id=1)), {})

    def test_normalize_currency(self):
        """Test currency codes are normalised."""
        self.assertEqual(normalize_currency(' eur '), 'EUR')
        self.assertEqual(normalize_currency('RMB'), 'RMB')
        self.assertEqual(normalize_currency('JPY'), 'GBP')
        self.assertEqual(normalize_currency(None), 'GBP')

class TestMathUtils(unittest.TestCase):
    """Test cases for numeric helpers."""

    def test_to_float(self):
        """Test loose values are converted to finite floats."""
        self.assertEqual(to_float('2.5'), 2.5)
        self.assertEqual(to_float(''), 0.0)
        self.assertEqual(to_float(None, 1.0), 1.0)
        self.assertEqual(to_float('nan'), 0.0)
        self.assertEqual(to_float('inf', 3.0), 3.0)

    def test_to_int(self):
        """Test values are truncated to ints."""
        self.assertEqual(to_int('4.9'), 4)
        self.assertEqual(to_int('bad', 2), 2)

    def test_clamp(self):
        """Test clamping with and without an upper bound."""
        self.assertEqual(clamp(-1, 0, 10), 0)
        self.assertEqual(clamp(11, 0, 10), 10)
        self.assertEqual(clamp(100, 0), 100)

    def test_parse_datetime(self):
        """Test the date formats found in legacy exports."""
        self.assertEqual(parse_datetime('2024-01-15'), datetime(2024, 1, 15))
        self.assertEqual(parse_datetime('15/01/2024 10:30'), datetime(2024, 1, 15, 10, 30))
        self.assertEqual(parse_datetime('2024-01-15T10:30:00+00:00'), datetime(2024, 1, 15, 10, 30))
        self.assertIsNone(parse_datetime('soon'))
        self.assertIsNone(parse_datetime(''))

class TestExceptions(unittest.TestCase):
    """Test cases for the error hierarchy."""

    def test_to_dict(self):
        """Test errors serialise with their details."""
        error = CollaboratorUnavailableError("orders offline", details={'product_id': 3})

        data = error.to_dict()

        self.assertIsInstance(error, SupplierReplenishmentError)
        self.assertEqual(data['error'], 'CollaboratorUnavailableError')
        self.assertEqual(data['message'], 'orders offline')
        self.assertEqual(data['details'], {'product_id': 3})

if __name__ == '__main__':
    unittest.main()
