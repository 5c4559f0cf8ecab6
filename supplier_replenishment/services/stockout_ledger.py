# supplier_replenishment/services/stockout_ledger.py
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from supplier_replenishment.core.stockout_days import (
    calculate_legacy_window_days, calculate_overlap_days
)
from supplier_replenishment.exceptions import (
    CollaboratorUnavailableError, StockoutLedgerError
)
from supplier_replenishment.interfaces import LegacyHistoryProvider
from supplier_replenishment.logging_setup import get_logger
from supplier_replenishment.models import StockoutLog
from supplier_replenishment.records import LegacyWindowDays
from supplier_replenishment.services.catalog_service import CatalogService
from supplier_replenishment.utils.date_utils import subtract_years
from supplier_replenishment.utils.validation import is_valid_window, normalize_id

logger = get_logger(__name__)

DEFAULT_RETENTION_YEARS = 5
MIN_RETENTION_YEARS = 1

SOURCE_RUNTIME = 'runtime'
SOURCE_STOCK_CHANGE = 'wc_stock'
SOURCE_BACKFILL = 'backfill'


class StockoutLedger:
    """Tracks stockout intervals and answers stockout-day questions for a window.

    Live intervals come from the ``stockout_log`` table. Products migrated
    from the previous system also carry a legacy aggregate which is turned
    into an estimate for the part of a window before the import.
    """

    def __init__(
        self,
        session: Session,
        legacy_provider: Optional[LegacyHistoryProvider] = None,
        catalog: Optional[CatalogService] = None
    ):
        """Initialize the stockout ledger.

        Args:
            session: Database session
            legacy_provider: Source of legacy stockout aggregates
            catalog: Catalog used by the zero-stock backfill
        """
        self.session = session
        self.legacy_provider = legacy_provider
        self.catalog = catalog

    def _open_query(self, product_id: int, variation_id: int):
        return self.session.query(StockoutLog).filter(
            StockoutLog.product_id == product_id,
            StockoutLog.variation_id == variation_id,
            StockoutLog.date_end.is_(None)
        )

    def get_open_interval(self, product_id: int, variation_id: int = 0) -> Optional[StockoutLog]:
        """Get the open interval of a product/variation, if any."""
        product_id = normalize_id(product_id)
        if not product_id:
            return None
        return self._open_query(product_id, max(0, int(variation_id or 0))).first()

    def open_interval(
        self,
        product_id: int,
        variation_id: int = 0,
        source: str = SOURCE_RUNTIME,
        note: str = '',
        now: Optional[datetime] = None
    ) -> Optional[int]:
        """Open a stockout interval unless one is already open.

        Args:
            product_id: Product ID
            variation_id: Variation ID (0 for simple products)
            source: Label of what triggered the stockout
            note: Free-text note stored on the interval
            now: Start time (defaults to the current time)

        Returns:
            ID of the new interval, or None when one was already open
        """
        product_id = normalize_id(product_id)
        variation_id = max(0, int(variation_id or 0))
        if not product_id:
            return None

        now = now or datetime.now()

        # Lock the open row (if any) so concurrent stock events serialize
        existing = self._open_query(product_id, variation_id).with_for_update().first()
        if existing is not None:
            return None

        interval = StockoutLog(
            product_id=product_id,
            variation_id=variation_id,
            date_start=now,
            date_end=None,
            source=source,
            notes=note,
            created_at=now,
            updated_at=now
        )

        # Savepoint: a lost race undoes this insert only
        try:
            with self.session.begin_nested():
                self.session.add(interval)
                self.session.flush()
        except IntegrityError:
            logger.info(
                f"Stockout already open for product {product_id} variation {variation_id}"
            )
            return None

        logger.debug(f"Opened stockout {interval.id} for product {product_id} variation {variation_id}")
        return interval.id

    def close_interval(
        self,
        product_id: int,
        variation_id: int = 0,
        source: str = SOURCE_RUNTIME,
        note: str = '',
        now: Optional[datetime] = None
    ) -> int:
        """Close every open stockout interval of a product/variation.

        Args:
            product_id: Product ID
            variation_id: Variation ID (0 for simple products)
            source: Label prefixed to the appended note
            note: Text appended to the interval notes
            now: End time (defaults to the current time)

        Returns:
            Number of intervals closed
        """
        product_id = normalize_id(product_id)
        variation_id = max(0, int(variation_id or 0))
        if not product_id:
            return 0

        now = now or datetime.now()
        open_intervals = self._open_query(product_id, variation_id).with_for_update().all()

        if not open_intervals:
            return 0

        appended = (note or '').strip()
        if appended and source:
            appended = f"[{source}] {appended}"

        for interval in open_intervals:
            interval.date_end = now
            interval.updated_at = now
            if appended:
                interval.notes = f"{interval.notes or ''}\n{appended}".strip()

        self.session.flush()

        logger.debug(
            f"Closed {len(open_intervals)} stockout(s) for product {product_id} variation {variation_id}"
        )
        return len(open_intervals)

    def days_in_window(
        self,
        product_id: int,
        variation_id: int,
        from_ts: datetime,
        to_ts: datetime,
        now: Optional[datetime] = None
    ) -> float:
        """Get the number of stockout days inside [from_ts, to_ts).

        Open intervals are treated as ending at ``now`` for the calculation
        only; nothing is written.

        Args:
            product_id: Product ID
            variation_id: Variation ID (0 for simple products)
            from_ts: Window start
            to_ts: Window end
            now: Reference time for open intervals

        Returns:
            Stockout days, clamped to the window length
        """
        product_id = normalize_id(product_id)
        if not product_id or not is_valid_window(from_ts, to_ts):
            return 0.0

        now = now or datetime.now()
        variation_id = max(0, int(variation_id or 0))

        try:
            rows = self.session.query(StockoutLog.date_start, StockoutLog.date_end).filter(
                StockoutLog.product_id == product_id,
                StockoutLog.variation_id == variation_id,
                StockoutLog.date_start < to_ts,
                or_(StockoutLog.date_end.is_(None), StockoutLog.date_end > from_ts)
            ).all()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailableError(
                f"Failed to read stockouts for product {product_id}: {str(e)}",
                details={'product_id': product_id}
            )

        return calculate_overlap_days(rows, from_ts, to_ts, now)

    def legacy_days_for_window(
        self,
        product_id: int,
        from_ts: datetime,
        to_ts: datetime
    ) -> LegacyWindowDays:
        """Estimate stockout days from the legacy aggregate of a product.

        Args:
            product_id: Product ID
            from_ts: Window start
            to_ts: Window end

        Returns:
            LegacyWindowDays (all zero when there is no usable legacy record)
        """
        product_id = normalize_id(product_id)
        if not product_id or not is_valid_window(from_ts, to_ts) or self.legacy_provider is None:
            return LegacyWindowDays()

        legacy = self.legacy_provider.get_legacy_history(product_id)
        if legacy is None:
            return LegacyWindowDays()

        return calculate_legacy_window_days(
            legacy.stockout_days,
            legacy.on_sale_days,
            legacy.imported_at,
            from_ts,
            to_ts
        )

    def prune(self, max_age_years: int = DEFAULT_RETENTION_YEARS, now: Optional[datetime] = None) -> int:
        """Delete intervals that started more than ``max_age_years`` ago.

        Args:
            max_age_years: Retention in years (at least 1)
            now: Reference time

        Returns:
            Number of intervals deleted
        """
        if max_age_years is None:
            max_age_years = DEFAULT_RETENTION_YEARS
        years = max(MIN_RETENTION_YEARS, int(max_age_years))
        cutoff = subtract_years(now or datetime.now(), years)

        try:
            deleted = self.session.query(StockoutLog).filter(
                StockoutLog.date_start < cutoff
            ).delete(synchronize_session=False)
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StockoutLedgerError(f"Failed to prune stockout log: {str(e)}")

        logger.info(f"Pruned {deleted} stockout interval(s) older than {cutoff:%Y-%m-%d}")
        return deleted

    def backfill_zero_stock(self, now: Optional[datetime] = None) -> int:
        """Open intervals for stock-managed products already at zero stock.

        Args:
            now: Start time for the new intervals

        Returns:
            Number of intervals opened
        """
        catalog = self.catalog or CatalogService(self.session)
        opened = 0

        for product in catalog.get_zero_stock_products():
            product_id, variation_id = self.ledger_key(product)
            if not product_id:
                continue

            if self.open_interval(
                product_id,
                variation_id,
                source=SOURCE_BACKFILL,
                note='Backfill: zero stock without open stockout',
                now=now
            ):
                opened += 1

        logger.info(f"Stockout backfill opened {opened} interval(s)")
        return opened

    @staticmethod
    def ledger_key(product: Any):
        """Get the (product_id, variation_id) pair a catalog product is tracked under."""
        parent_id = normalize_id(getattr(product, 'parent_id', 0))
        own_id = normalize_id(getattr(product, 'id', 0))

        if parent_id:
            return parent_id, own_id
        return own_id, 0

    def handle_stock_change(self, product: Any, now: Optional[datetime] = None) -> None:
        """Open or close stockout intervals after a stock change.

        Args:
            product: Catalog product with ``manage_stock``, ``stock_quantity``
                and ``stock_status``
            now: Event time
        """
        product_id, variation_id = self.ledger_key(product)
        if not product_id:
            return

        if not getattr(product, 'manage_stock', False):
            self.close_interval(
                product_id, variation_id, SOURCE_STOCK_CHANGE,
                'Auto close: stock management disabled', now=now
            )
            return

        quantity = getattr(product, 'stock_quantity', None)
        quantity = 0 if quantity is None else int(quantity)
        status = str(getattr(product, 'stock_status', '') or '')

        if status == 'outofstock' or quantity <= 0:
            self.open_interval(
                product_id, variation_id, SOURCE_STOCK_CHANGE,
                'Auto open from stock change', now=now
            )
        else:
            self.close_interval(
                product_id, variation_id, SOURCE_STOCK_CHANGE,
                'Auto close from stock change', now=now
            )
