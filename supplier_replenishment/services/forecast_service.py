# supplier_replenishment/services/forecast_service.py
import math
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from supplier_replenishment.core.order_quantity import (
    apply_cycle_cap, calculate_buffer_days, calculate_cycle_cap,
    calculate_lead_days, calculate_order_quantity, resolve_cycle_months
)
from supplier_replenishment.exceptions import ComputationError
from supplier_replenishment.interfaces import CatalogProvider
from supplier_replenishment.logging_setup import get_logger
from supplier_replenishment.records import ForecastRow, ProductRecord, SupplierPolicy
from supplier_replenishment.services.catalog_service import CatalogService
from supplier_replenishment.services.demand_summarizer import DemandSummarizer
from supplier_replenishment.services.legacy_history_service import LegacyHistoryService
from supplier_replenishment.services.order_history_service import OrderHistoryService
from supplier_replenishment.services.policy_resolver import SupplierPolicyResolver
from supplier_replenishment.services.settings_service import SettingsService
from supplier_replenishment.services.stockout_ledger import StockoutLedger
from supplier_replenishment.services.supplier_service import SupplierService
from supplier_replenishment.utils.validation import normalize_id

logger = get_logger(__name__)

RowProcessor = Callable[[List[ForecastRow], int, SupplierPolicy], List[ForecastRow]]


class ForecastEngine:
    """Service for producing suggested order quantities per supplier."""

    def __init__(
        self,
        catalog: CatalogProvider,
        policy_resolver: SupplierPolicyResolver,
        summarizer: DemandSummarizer,
        row_processors: Optional[Iterable[RowProcessor]] = None
    ):
        """Initialize the forecast engine.

        Args:
            catalog: Product lookups and monthly caps
            policy_resolver: Supplier policy resolution
            summarizer: Demand summaries per product
            row_processors: Callables applied to the finished rows of a supplier
        """
        self.catalog = catalog
        self.policy_resolver = policy_resolver
        self.summarizer = summarizer
        self.row_processors = list(row_processors or [])

    def add_row_processor(self, processor: RowProcessor) -> None:
        """Register a callable run as ``rows = processor(rows, supplier_id, policy)``."""
        self.row_processors.append(processor)

    def _monthly_cap(self, product_id: int) -> float:
        try:
            cap = self.catalog.get_monthly_cap(product_id)
        except Exception as e:
            logger.warning(f"Monthly cap unavailable for product {product_id}, treating as uncapped: {str(e)}")
            return 0.0

        return max(0.0, float(cap or 0.0))

    def forecast_product(
        self,
        product: ProductRecord,
        policy: SupplierPolicy,
        lookback_days: Optional[int] = None,
        order_cycle_months: Optional[float] = None,
        as_of_date: Union[date, datetime, None] = None
    ) -> ForecastRow:
        """Forecast a single product under a supplier policy.

        Args:
            product: Product snapshot
            policy: Resolved supplier policy
            lookback_days: Analysis window (defaults to the policy lookback)
            order_cycle_months: Fallback order cycle when there is no buffer
            as_of_date: Last day of the analysis window

        Returns:
            ForecastRow

        Raises:
            ComputationError: if the calculation produced a non-finite value
        """
        if lookback_days is None:
            lookback_days = policy.lookback_days

        summary = self.summarizer.summarize(product.id, lookback_days, as_of_date)
        demand_per_day = summary.demand_per_day

        lead_days = calculate_lead_days(policy.lead_time_weeks, policy.holiday_extra_days)
        buffer_days = calculate_buffer_days(policy.buffer_months)
        current_stock = max(0, int(product.stock_quantity or 0))

        quantities = calculate_order_quantity(
            demand_per_day, current_stock, lead_days, buffer_days
        )

        max_per_month = self._monthly_cap(product.id)
        effective_cycle_months = resolve_cycle_months(policy.buffer_months, order_cycle_months)
        max_for_cycle = calculate_cycle_cap(max_per_month, effective_cycle_months)
        suggested_capped = apply_cycle_cap(quantities['suggested_raw'], max_for_cycle)

        for key in ('suggested_raw', 'forecast_demand', 'stock_at_arrival'):
            if not math.isfinite(quantities[key]):
                raise ComputationError(
                    f"Non-finite {key} for product {product.id}",
                    details={'product_id': product.id, key: quantities[key]}
                )

        return ForecastRow(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            current_stock=current_stock,
            qty_sold=summary.qty_sold,
            demand_per_day=demand_per_day,
            lead_days=lead_days,
            buffer_months=policy.buffer_months,
            buffer_days=buffer_days,
            forecast_days=quantities['forecast_days'],
            forecast_demand=quantities['forecast_demand'],
            lead_demand=quantities['lead_demand'],
            buffer_demand=quantities['buffer_demand'],
            stock_at_arrival=quantities['stock_at_arrival'],
            inbound_qty=0.0,
            buffer_target=quantities['buffer_target'],
            suggested_raw=quantities['suggested_raw'],
            suggested_capped=suggested_capped,
            max_per_month=max_per_month,
            effective_cycle_months=effective_cycle_months,
            max_for_cycle=max_for_cycle,
            days_on_sale=summary.days_on_sale,
            total_days=summary.total_days,
            stockout_days_live=summary.stockout_days_live,
            stockout_days_legacy=summary.stockout_days_legacy,
            stockout_days_total=summary.stockout_days_total,
            legacy_total_days=summary.legacy_total_days
        )

    def forecast_supplier(
        self,
        supplier_id: int,
        as_of_date: Union[date, datetime, None] = None
    ) -> List[ForecastRow]:
        """Forecast every product of a supplier.

        A failure on one product is logged and that product is left out;
        the rest of the run continues.

        Args:
            supplier_id: Supplier ID
            as_of_date: Last day of the analysis window

        Returns:
            List of ForecastRow (empty for an unknown supplier)
        """
        supplier_id = normalize_id(supplier_id)
        if not supplier_id:
            return []

        policy = self.policy_resolver.resolve(supplier_id)
        if not policy.is_resolved:
            logger.info(f"No policy for supplier {supplier_id}, nothing to forecast")
            return []

        order_cycle_months = self.policy_resolver.order_cycle_months()

        try:
            product_ids = self.catalog.get_products_for_supplier(supplier_id)
        except Exception as e:
            logger.error(f"Could not list products for supplier {supplier_id}: {str(e)}")
            return []

        rows = []
        for product_id in product_ids:
            try:
                product = self.catalog.get_product(product_id)
                if product is None:
                    logger.debug(f"Product {product_id} of supplier {supplier_id} not found, skipping")
                    continue

                rows.append(self.forecast_product(
                    product,
                    policy,
                    lookback_days=policy.lookback_days,
                    order_cycle_months=order_cycle_months,
                    as_of_date=as_of_date
                ))
            except Exception as e:
                logger.error(
                    f"Error forecasting product {product_id} for supplier {supplier_id}: {str(e)}"
                )

        for processor in self.row_processors:
            try:
                processed = processor(rows, supplier_id, policy)
                if processed is not None:
                    rows = list(processed)
            except Exception as e:
                logger.error(
                    f"Row processor {getattr(processor, '__name__', processor)!r} failed "
                    f"for supplier {supplier_id}: {str(e)}"
                )

        logger.info(f"Forecast for supplier {supplier_id}: {len(rows)} of {len(product_ids)} products")
        return rows


def build_forecast_engine(
    session: Session,
    row_processors: Optional[Iterable[RowProcessor]] = None
) -> ForecastEngine:
    """Wire the database-backed services into a forecast engine.

    Args:
        session: Database session
        row_processors: Callables applied to finished supplier rows

    Returns:
        ForecastEngine
    """
    catalog = CatalogService(session)
    ledger = StockoutLedger(session, legacy_provider=LegacyHistoryService(session), catalog=catalog)

    return ForecastEngine(
        catalog,
        SupplierPolicyResolver(SupplierService(session), SettingsService(session)),
        DemandSummarizer(catalog, OrderHistoryService(session), ledger),
        row_processors=row_processors
    )
