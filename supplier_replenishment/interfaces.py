# supplier_replenishment/interfaces.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from supplier_replenishment.records import (
    GlobalSettings, LegacyHistory, ProductRecord, SupplierRecord
)

ALLOWED_ORDER_STATUSES = ('processing', 'completed', 'on-hold')


class CatalogProvider(ABC):
    """Read access to the product catalog."""

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[ProductRecord]:
        """Get a product snapshot, or None if it does not exist."""
        pass

    @abstractmethod
    def get_monthly_cap(self, product_id: int) -> float:
        """Get the maximum order quantity per month (0 = uncapped)."""
        pass

    @abstractmethod
    def get_products_for_supplier(self, supplier_id: int) -> List[int]:
        """Get ids of all products assigned to a supplier."""
        pass


class OrderHistoryProvider(ABC):
    """Aggregated order history."""

    @abstractmethod
    def sum_quantity_sold(
        self,
        product_id: int,
        from_ts: datetime,
        to_ts: datetime,
        allowed_statuses: Sequence[str] = ALLOWED_ORDER_STATUSES
    ) -> int:
        """Sum ordered quantity for orders created in [from_ts, to_ts)."""
        pass


class SupplierRegistry(ABC):
    """Supplier lookups."""

    @abstractmethod
    def get_supplier(self, supplier_id: int) -> Optional[SupplierRecord]:
        """Get a supplier, or None if it does not exist."""
        pass


class SettingsProvider(ABC):
    """Store-wide planning settings."""

    @abstractmethod
    def get_global_settings(self) -> GlobalSettings:
        """Get the global settings."""
        pass


class LegacyHistoryProvider(ABC):
    """Pre-migration stockout aggregates."""

    @abstractmethod
    def get_legacy_history(self, product_id: int) -> Optional[LegacyHistory]:
        """Get the legacy record of a product, or None."""
        pass
