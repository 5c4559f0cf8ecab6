# supplier_replenishment/core/order_quantity.py
from typing import Dict, Optional

from ..utils.math_utils import clamp

AVERAGE_DAYS_PER_MONTH = 30.4375
DEFAULT_ORDER_CYCLE_MONTHS = 6.0

def calculate_lead_days(lead_time_weeks: float, holiday_extra_days: float = 0) -> float:
    """Calculate supplier lead time in days.

    Args:
        lead_time_weeks: Quoted lead time in weeks
        holiday_extra_days: Extra days added for supplier holidays

    Returns:
        Lead days, never negative
    """
    return max(0, (lead_time_weeks or 0) * 7 + (holiday_extra_days or 0))

def calculate_buffer_days(buffer_months: float) -> float:
    """Convert buffer months to days using the average month length."""
    return max(0.0, (buffer_months or 0.0) * AVERAGE_DAYS_PER_MONTH)

def calculate_days_on_sale(total_days: float, stockout_days: float) -> float:
    """Get days the product was available, never below one day."""
    return max(1.0, total_days - clamp(stockout_days, 0.0, total_days))

def calculate_demand_per_day(qty_sold: float, days_on_sale: float) -> float:
    """Calculate sales velocity.

    Args:
        qty_sold: Units sold in the window
        days_on_sale: Days the product was available

    Returns:
        Units per day (0 when nothing sold)
    """
    if qty_sold <= 0:
        return 0.0
    return qty_sold / max(1.0, days_on_sale)

def resolve_cycle_months(
    buffer_months: float,
    order_cycle_months: Optional[float] = None
) -> float:
    """Get the number of months a single order is meant to cover.

    The buffer horizon wins when set; otherwise the configured order cycle.
    """
    if buffer_months and buffer_months > 0:
        return float(buffer_months)

    if order_cycle_months is None:
        order_cycle_months = DEFAULT_ORDER_CYCLE_MONTHS

    return max(0.0, float(order_cycle_months))

def calculate_cycle_cap(max_per_month: float, cycle_months: float) -> float:
    """Calculate the order ceiling for one cycle (0 means uncapped)."""
    if max_per_month > 0 and cycle_months > 0:
        return max_per_month * cycle_months
    return 0.0

def apply_cycle_cap(suggested_raw: float, max_for_cycle: float) -> float:
    """Cap a suggested quantity; a zero cap leaves it unchanged."""
    if max_for_cycle > 0:
        return min(suggested_raw, max_for_cycle)
    return suggested_raw

def calculate_order_quantity(
    demand_per_day: float,
    current_stock: float,
    lead_days: float,
    buffer_days: float,
    inbound_qty: float = 0.0
) -> Dict[str, float]:
    """Project stock at arrival and the quantity needed to reach the buffer.

    The order must cover the buffer horizon starting from the moment the
    shipment lands, after lead-time demand has been served from current stock.

    Args:
        demand_per_day: Sales velocity
        current_stock: Units on hand (negatives count as zero)
        lead_days: Days until the order arrives
        buffer_days: Days of stock wanted after arrival
        inbound_qty: Units already on the way

    Returns:
        Dictionary with lead/buffer demand, stock at arrival, buffer target,
        forecast days/demand and the raw suggested quantity
    """
    lead_days = max(0.0, lead_days)
    buffer_days = max(0.0, buffer_days)
    current_stock = max(0.0, current_stock)

    lead_demand = demand_per_day * lead_days
    buffer_demand = demand_per_day * buffer_days

    stock_at_arrival = max(0.0, current_stock + inbound_qty - lead_demand)
    buffer_target = buffer_demand

    forecast_days = lead_days + buffer_days
    forecast_demand = demand_per_day * forecast_days

    suggested_raw = max(0.0, buffer_target - stock_at_arrival)

    return {
        'lead_demand': lead_demand,
        'buffer_demand': buffer_demand,
        'stock_at_arrival': stock_at_arrival,
        'buffer_target': buffer_target,
        'forecast_days': forecast_days,
        'forecast_demand': forecast_demand,
        'suggested_raw': suggested_raw
    }
