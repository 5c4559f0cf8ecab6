# supplier_replenishment/core/stockout_days.py
from datetime import datetime
from typing import Iterable, Optional, Tuple

import numpy as np

from ..records import LegacyWindowDays
from ..utils.date_utils import DAY_IN_SECONDS, days_between
from ..utils.math_utils import clamp

def calculate_window_days(window_start: datetime, window_end: datetime) -> float:
    """Get the length of a window in days (0 for empty or inverted windows)."""
    if window_start is None or window_end is None or window_start >= window_end:
        return 0.0
    return days_between(window_start, window_end)

def calculate_overlap_days(
    intervals: Iterable[Tuple[datetime, Optional[datetime]]],
    window_start: datetime,
    window_end: datetime,
    now: datetime
) -> float:
    """Calculate total stockout days falling inside [window_start, window_end).

    Args:
        intervals: (start, end) pairs; an end of None means the interval
            is still open and is treated as ending at ``now``
        window_start: Start of the window
        window_end: End of the window
        now: Reference time for open intervals

    Returns:
        Overlap in days, clamped to [0, window length]
    """
    window_days = calculate_window_days(window_start, window_end)
    if window_days <= 0:
        return 0.0

    # Offsets in seconds relative to the window start
    starts = []
    ends = []
    for start, end in intervals:
        if start is None:
            continue
        effective_end = end if end is not None else now
        starts.append((start - window_start).total_seconds())
        ends.append((effective_end - window_start).total_seconds())

    if not starts:
        return 0.0

    window_seconds = window_days * DAY_IN_SECONDS
    clipped_starts = np.clip(np.array(starts, dtype=float), 0.0, window_seconds)
    clipped_ends = np.clip(np.array(ends, dtype=float), 0.0, window_seconds)

    overlap_seconds = float(np.sum(np.maximum(clipped_ends - clipped_starts, 0.0)))

    return clamp(overlap_seconds / DAY_IN_SECONDS, 0.0, window_days)

def calculate_stockout_ratio(stockout_days: float, on_sale_days: float) -> float:
    """Get the share of legacy days that were out of stock.

    Returns:
        Ratio in [0, 1], or 0 when there are no legacy days
    """
    stockout_days = max(0.0, stockout_days or 0.0)
    on_sale_days = max(0.0, on_sale_days or 0.0)

    denominator = stockout_days + on_sale_days
    if denominator <= 0:
        return 0.0

    return stockout_days / denominator

def calculate_legacy_window_days(
    stockout_days: float,
    on_sale_days: float,
    imported_at: Optional[datetime],
    window_start: datetime,
    window_end: datetime
) -> LegacyWindowDays:
    """Estimate stockout days for the part of a window before the legacy import.

    The legacy aggregates only describe the time before they were imported,
    so the ratio of stockout to on-sale days is applied to the pre-import
    part of the window only.

    Args:
        stockout_days: Legacy stockout day count
        on_sale_days: Legacy on-sale day count
        imported_at: When the legacy aggregates were imported
        window_start: Start of the window
        window_end: End of the window

    Returns:
        LegacyWindowDays with stockout, in-stock and total days
    """
    lookback_days = calculate_window_days(window_start, window_end)
    if lookback_days <= 0:
        return LegacyWindowDays()

    if (stockout_days or 0) + (on_sale_days or 0) <= 0:
        return LegacyWindowDays()

    ratio = calculate_stockout_ratio(stockout_days, on_sale_days)

    if imported_at is None or imported_at < window_start:
        pre_import_days = lookback_days
    else:
        days_since_import = days_between(imported_at, window_end)
        pre_import_days = clamp(lookback_days - days_since_import, 0.0, lookback_days)

    if pre_import_days <= 0:
        return LegacyWindowDays()

    return LegacyWindowDays(
        stockout_days=pre_import_days * ratio,
        in_stock_days=pre_import_days * (1.0 - ratio),
        total_days=pre_import_days
    )
