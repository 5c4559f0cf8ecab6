from .stockout_days import (
    calculate_window_days, calculate_overlap_days,
    calculate_stockout_ratio, calculate_legacy_window_days
)
from .order_quantity import (
    AVERAGE_DAYS_PER_MONTH, DEFAULT_ORDER_CYCLE_MONTHS,
    calculate_lead_days, calculate_buffer_days, calculate_days_on_sale,
    calculate_demand_per_day, resolve_cycle_months, calculate_cycle_cap,
    apply_cycle_cap, calculate_order_quantity
)

__all__ = [
    'calculate_window_days',
    'calculate_overlap_days',
    'calculate_stockout_ratio',
    'calculate_legacy_window_days',
    'AVERAGE_DAYS_PER_MONTH',
    'DEFAULT_ORDER_CYCLE_MONTHS',
    'calculate_lead_days',
    'calculate_buffer_days',
    'calculate_days_on_sale',
    'calculate_demand_per_day',
    'resolve_cycle_months',
    'calculate_cycle_cap',
    'apply_cycle_cap',
    'calculate_order_quantity'
]
