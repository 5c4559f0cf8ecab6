"""Plain records passed between the forecasting components.

These are read-only snapshots of catalog, supplier and settings data plus
the computed results (demand summaries and forecast rows). None of them is
persisted by the forecasting core.
"""
from dataclasses import dataclass, asdict, field
from datetime import datetime
from typing import Any, Dict, Optional

DEFAULT_CURRENCY = 'GBP'


@dataclass(frozen=True)
class ProductRecord:
    id: int
    sku: str = ''
    name: str = ''
    stock_quantity: int = 0
    parent_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_variation(self) -> bool:
        return bool(self.parent_id)


@dataclass(frozen=True)
class SupplierRecord:
    id: int
    name: str = ''
    lead_time_weeks: int = 0
    holiday_extra_days: int = 0
    currency: str = DEFAULT_CURRENCY
    buffer_months_override: Optional[float] = None


@dataclass(frozen=True)
class GlobalSettings:
    buffer_months_global: float = 6.0
    analysis_lookback_days: int = 365
    order_cycle_months: float = 6.0
    log_retention_years: int = 5


@dataclass(frozen=True)
class LegacyHistory:
    stockout_days: float = 0.0
    on_sale_days: float = 0.0
    imported_at: Optional[datetime] = None


@dataclass(frozen=True)
class LegacyWindowDays:
    """Legacy stockout estimate for the pre-import part of a window."""
    stockout_days: float = 0.0
    in_stock_days: float = 0.0
    total_days: float = 0.0


@dataclass(frozen=True)
class SupplierPolicy:
    """Effective ordering policy for one supplier.

    ``supplier_id`` is None for the zeroed fallback policy returned when the
    supplier cannot be found.
    """
    supplier_id: Optional[int] = None
    lead_time_weeks: int = 0
    buffer_months: float = 0.0
    holiday_extra_days: int = 0
    lookback_days: int = 365
    currency: str = DEFAULT_CURRENCY

    @property
    def lead_days(self) -> int:
        return max(0, self.lead_time_weeks * 7 + self.holiday_extra_days)

    @property
    def is_resolved(self) -> bool:
        return self.supplier_id is not None


@dataclass(frozen=True)
class DemandSummary:
    product_id: int
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    qty_sold: int = 0
    total_days: float = 1.0
    stockout_days_live: float = 0.0
    stockout_days_legacy: float = 0.0
    legacy_total_days: float = 0.0
    stockout_days_total: float = 0.0
    days_on_sale: float = 1.0
    demand_per_day: float = 0.0

    @classmethod
    def empty(cls, product_id: int) -> 'DemandSummary':
        return cls(product_id=product_id)


@dataclass
class ForecastRow:
    product_id: int
    sku: str
    name: str
    current_stock: int
    qty_sold: int
    demand_per_day: float
    lead_days: float
    buffer_months: float
    buffer_days: float
    forecast_days: float
    forecast_demand: float
    lead_demand: float
    buffer_demand: float
    stock_at_arrival: float
    inbound_qty: float
    buffer_target: float
    suggested_raw: float
    suggested_capped: float
    max_per_month: float
    effective_cycle_months: float
    max_for_cycle: float
    days_on_sale: float
    total_days: float
    stockout_days_live: float
    stockout_days_legacy: float
    stockout_days_total: float
    legacy_total_days: float
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def demand_during_lead(self) -> float:
        return self.lead_demand

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        extra = data.pop('extra')
        data['demand_during_lead'] = self.lead_demand
        data.update(extra)
        return data
