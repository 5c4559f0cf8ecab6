# supplier_replenishment/services/demand_summarizer.py
from datetime import date, datetime
from typing import Optional, Union

from supplier_replenishment.core.order_quantity import (
    calculate_days_on_sale, calculate_demand_per_day
)
from supplier_replenishment.core.stockout_days import calculate_window_days
from supplier_replenishment.interfaces import (
    ALLOWED_ORDER_STATUSES, CatalogProvider, OrderHistoryProvider
)
from supplier_replenishment.logging_setup import get_logger
from supplier_replenishment.records import DemandSummary, LegacyWindowDays
from supplier_replenishment.services.stockout_ledger import StockoutLedger
from supplier_replenishment.utils.date_utils import (
    days_between, get_lookback_window, parse_datetime
)
from supplier_replenishment.utils.math_utils import clamp
from supplier_replenishment.utils.validation import normalize_id

logger = get_logger(__name__)


class DemandSummarizer:
    """Turns sales and stockout history into a sales velocity.

    Velocity is measured over the days a product was actually on sale: the
    window is shortened to the product's life and stockout days (live and
    legacy) are taken out before dividing.
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        order_history: OrderHistoryProvider,
        ledger: StockoutLedger
    ):
        """Initialize the demand summarizer.

        Args:
            catalog: Product lookups (creation dates)
            order_history: Sales aggregation
            ledger: Stockout ledger
        """
        self.catalog = catalog
        self.order_history = order_history
        self.ledger = ledger

    def _created_at(self, product_id: int) -> Optional[datetime]:
        try:
            product = self.catalog.get_product(product_id)
        except Exception as e:
            logger.warning(f"Could not load product {product_id}, ignoring creation date: {str(e)}")
            return None

        if product is None:
            return None
        return parse_datetime(product.created_at)

    def _qty_sold(self, product_id: int, from_ts: datetime, to_ts: datetime) -> int:
        try:
            qty = self.order_history.sum_quantity_sold(
                product_id, from_ts, to_ts, ALLOWED_ORDER_STATUSES
            )
        except Exception as e:
            logger.warning(f"Sales unavailable for product {product_id}, assuming none: {str(e)}")
            return 0

        return max(0, int(qty or 0))

    def _live_stockout_days(
        self,
        product_id: int,
        from_ts: datetime,
        to_ts: datetime,
        now: Optional[datetime]
    ) -> float:
        try:
            days = self.ledger.days_in_window(product_id, 0, from_ts, to_ts, now=now)
        except Exception as e:
            logger.warning(f"Stockout log unavailable for product {product_id}: {str(e)}")
            return 0.0

        return max(0.0, float(days or 0.0))

    def _legacy_days(self, product_id: int, from_ts: datetime, to_ts: datetime) -> LegacyWindowDays:
        try:
            return self.ledger.legacy_days_for_window(product_id, from_ts, to_ts)
        except Exception as e:
            logger.warning(f"Legacy history unavailable for product {product_id}: {str(e)}")
            return LegacyWindowDays()

    def summarize(
        self,
        product_id: int,
        lookback_days: int,
        as_of_date: Union[date, datetime, None] = None,
        now: Optional[datetime] = None
    ) -> DemandSummary:
        """Summarize demand of a product over the lookback window.

        Args:
            product_id: Product ID
            lookback_days: Window length in days
            as_of_date: Last day of the window (defaults to today)
            now: Reference time for stockouts that are still open

        Returns:
            DemandSummary with all intermediate values
        """
        product_id = normalize_id(product_id)
        if not product_id:
            return DemandSummary.empty(product_id)

        from_ts, to_ts = get_lookback_window(max(1, int(lookback_days or 1)), as_of_date)
        window_span_days = max(1.0, calculate_window_days(from_ts, to_ts))

        created_at = self._created_at(product_id)
        if created_at is not None:
            effective_start = max(from_ts, created_at)
            total_days = max(1.0, min(window_span_days, days_between(effective_start, to_ts)))
        else:
            total_days = window_span_days

        qty_sold = self._qty_sold(product_id, from_ts, to_ts)
        live_days = self._live_stockout_days(product_id, from_ts, to_ts, now)
        legacy = self._legacy_days(product_id, from_ts, to_ts)

        stockout_days_total = clamp(live_days + legacy.stockout_days, 0.0, total_days)
        days_on_sale = calculate_days_on_sale(total_days, stockout_days_total)

        return DemandSummary(
            product_id=product_id,
            window_start=from_ts,
            window_end=to_ts,
            qty_sold=qty_sold,
            total_days=total_days,
            stockout_days_live=live_days,
            stockout_days_legacy=legacy.stockout_days,
            legacy_total_days=legacy.total_days,
            stockout_days_total=stockout_days_total,
            days_on_sale=days_on_sale,
            demand_per_day=calculate_demand_per_day(qty_sold, days_on_sale)
        )
