# supplier_replenishment/services/policy_resolver.py
from typing import Optional

from supplier_replenishment.core.order_quantity import DEFAULT_ORDER_CYCLE_MONTHS
from supplier_replenishment.interfaces import SettingsProvider, SupplierRegistry
from supplier_replenishment.logging_setup import get_logger
from supplier_replenishment.records import DEFAULT_CURRENCY, GlobalSettings, SupplierPolicy
from supplier_replenishment.services.supplier_service import normalize_currency
from supplier_replenishment.utils.validation import normalize_id, validate_supplier

logger = get_logger(__name__)


class SupplierPolicyResolver:
    """Resolves the effective ordering policy of a supplier.

    Supplier values win over global settings where they are set. Resolution
    never raises; a supplier that cannot be loaded yields a zeroed policy.
    """

    def __init__(self, supplier_registry: SupplierRegistry, settings_provider: SettingsProvider):
        """Initialize the policy resolver.

        Args:
            supplier_registry: Supplier lookups
            settings_provider: Global settings
        """
        self.supplier_registry = supplier_registry
        self.settings_provider = settings_provider

    def _settings(self) -> GlobalSettings:
        try:
            return self.settings_provider.get_global_settings()
        except Exception as e:
            logger.warning(f"Global settings unavailable, using defaults: {str(e)}")
            return GlobalSettings()

    def lookback_days(self, supplier_id: Optional[int] = None) -> int:
        """Get the analysis lookback in days (the same for every supplier)."""
        return max(1, int(self._settings().analysis_lookback_days))

    def order_cycle_months(self) -> float:
        """Get the global order cycle in months."""
        cycle_months = self._settings().order_cycle_months
        if cycle_months is None:
            return DEFAULT_ORDER_CYCLE_MONTHS
        return max(1.0, float(cycle_months))

    def resolve(self, supplier_id: int) -> SupplierPolicy:
        """Resolve the policy for a supplier.

        Args:
            supplier_id: Supplier ID

        Returns:
            SupplierPolicy; ``supplier_id`` is None when the supplier is
            unknown
        """
        settings = self._settings()
        lookback = max(1, int(settings.analysis_lookback_days))

        fallback = SupplierPolicy(
            supplier_id=None,
            lookback_days=lookback,
            currency=DEFAULT_CURRENCY
        )

        supplier_id = normalize_id(supplier_id)
        if not supplier_id:
            return fallback

        try:
            supplier = self.supplier_registry.get_supplier(supplier_id)
        except Exception as e:
            logger.error(f"Could not load supplier {supplier_id}: {str(e)}")
            return fallback

        if supplier is None:
            logger.info(f"Supplier {supplier_id} not found")
            return fallback

        errors = validate_supplier(supplier)
        if errors:
            logger.warning(f"Supplier {supplier_id} has invalid values, clamping: {errors}")

        if supplier.buffer_months_override is not None:
            buffer_months = max(0.0, float(supplier.buffer_months_override))
        else:
            buffer_months = max(0.0, float(settings.buffer_months_global))

        return SupplierPolicy(
            supplier_id=supplier.id,
            lead_time_weeks=max(0, int(supplier.lead_time_weeks or 0)),
            buffer_months=buffer_months,
            holiday_extra_days=max(0, int(supplier.holiday_extra_days or 0)),
            lookback_days=lookback,
            currency=normalize_currency(supplier.currency)
        )
