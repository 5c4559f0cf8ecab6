# supplier_replenishment/services/supplier_service.py
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from supplier_replenishment.exceptions import CollaboratorUnavailableError
from supplier_replenishment.interfaces import SupplierRegistry
from supplier_replenishment.models import Supplier
from supplier_replenishment.records import DEFAULT_CURRENCY, SupplierRecord
from supplier_replenishment.utils.validation import normalize_id

SUPPORTED_CURRENCIES = ('GBP', 'RMB', 'USD', 'EUR')


def normalize_currency(currency: Optional[str]) -> str:
    """Map a currency code onto a supported one, falling back to GBP."""
    code = (currency or '').strip().upper()
    return code if code in SUPPORTED_CURRENCIES else DEFAULT_CURRENCY


class SupplierService(SupplierRegistry):
    """Service for handling supplier-related operations."""

    def __init__(self, session: Session):
        """Initialize the supplier service.

        Args:
            session: Database session
        """
        self.session = session

    def get_supplier_model(self, supplier_id: int) -> Optional[Supplier]:
        """Get a supplier ORM object by ID.

        Args:
            supplier_id: Supplier ID

        Returns:
            Supplier object or None if not found
        """
        supplier_id = normalize_id(supplier_id)
        if not supplier_id:
            return None

        try:
            return self.session.query(Supplier).filter(Supplier.id == supplier_id).first()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailableError(
                f"Failed to load supplier {supplier_id}: {str(e)}",
                details={'supplier_id': supplier_id}
            )

    def get_supplier(self, supplier_id: int) -> Optional[SupplierRecord]:
        supplier = self.get_supplier_model(supplier_id)
        if supplier is None:
            return None

        return SupplierRecord(
            id=supplier.id,
            name=supplier.name or '',
            lead_time_weeks=supplier.lead_time_weeks or 0,
            holiday_extra_days=supplier.holiday_extra_days or 0,
            currency=normalize_currency(supplier.currency),
            buffer_months_override=supplier.buffer_months_override
        )

    def get_all_suppliers(self, active_only: bool = False) -> List[Supplier]:
        """Get all suppliers ordered by name.

        Args:
            active_only: Only return active suppliers

        Returns:
            List of supplier objects
        """
        query = self.session.query(Supplier)
        if active_only:
            query = query.filter(Supplier.is_active.is_(True))
        return query.order_by(Supplier.name).all()
