# supplier_replenishment/services/legacy_history_service.py
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from supplier_replenishment.exceptions import CollaboratorUnavailableError, LegacyImportError
from supplier_replenishment.interfaces import LegacyHistoryProvider
from supplier_replenishment.logging_setup import get_logger
from supplier_replenishment.models import LegacyProductHistory
from supplier_replenishment.records import LegacyHistory
from supplier_replenishment.utils.date_utils import parse_datetime
from supplier_replenishment.utils.math_utils import to_float
from supplier_replenishment.utils.validation import normalize_id

logger = get_logger(__name__)

LEGACY_COLUMNS = tuple(
    column.name for column in LegacyProductHistory.__table__.columns if column.name != 'id'
)


class LegacyHistoryService(LegacyHistoryProvider):
    """Service for reading and importing pre-migration product history."""

    def __init__(self, session: Session):
        """Initialize the legacy history service.

        Args:
            session: Database session
        """
        self.session = session

    def get_legacy_row(self, product_id: int) -> Optional[LegacyProductHistory]:
        product_id = normalize_id(product_id)
        if not product_id:
            return None

        try:
            return self.session.query(LegacyProductHistory).filter(
                LegacyProductHistory.product_id == product_id
            ).first()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailableError(
                f"Failed to load legacy history for product {product_id}: {str(e)}",
                details={'product_id': product_id}
            )

    def get_legacy_history(self, product_id: int) -> Optional[LegacyHistory]:
        """Get the legacy stockout aggregates of a product.

        Args:
            product_id: Product ID

        Returns:
            LegacyHistory or None if the product has no legacy record
        """
        row = self.get_legacy_row(product_id)
        if row is None:
            return None

        return LegacyHistory(
            stockout_days=to_float(row.stockout_days_12m_legacy),
            on_sale_days=to_float(row.days_on_sale_12m_legacy),
            imported_at=row.imported_at
        )

    @staticmethod
    def normalize_row(data: Dict[str, Any]) -> Dict[str, Any]:
        """Keep known columns and coerce them to their column types.

        Empty strings become NULL, numbers are coerced to int or float and
        dates that cannot be parsed become NULL.
        """
        normalized = {}

        for column, value in data.items():
            if column not in LEGACY_COLUMNS:
                continue

            if isinstance(value, str):
                value = value.strip()

            if value == '' or value is None:
                normalized[column] = None
            elif column in LegacyProductHistory.DATE_COLUMNS:
                normalized[column] = parse_datetime(value)
            elif column in LegacyProductHistory.INTEGER_COLUMNS:
                normalized[column] = int(to_float(value))
            elif column in LegacyProductHistory.FLOAT_COLUMNS:
                normalized[column] = to_float(value)
            else:
                normalized[column] = value

        return normalized

    def upsert_row(self, data: Dict[str, Any], now: Optional[datetime] = None) -> Optional[int]:
        """Insert or update the legacy row of a product.

        Args:
            data: Column to value mapping; must contain a positive product_id
            now: Import time used when ``imported_at`` is missing

        Returns:
            ID of the legacy row, or None if the product id is not usable
        """
        product_id = normalize_id(data.get('product_id'))
        if not product_id:
            return None

        values = self.normalize_row(data)
        values['product_id'] = product_id
        if not values.get('imported_at'):
            values['imported_at'] = now or datetime.now()

        row = self.get_legacy_row(product_id)
        if row is None:
            row = LegacyProductHistory(product_id=product_id)
            self.session.add(row)

        for column, value in values.items():
            setattr(row, column, value)

        try:
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise LegacyImportError(
                f"Failed to store legacy history for product {product_id}: {str(e)}",
                details={'product_id': product_id}
            )

        return row.id

    def import_rows(self, rows: Iterable[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, int]:
        """Upsert many legacy rows.

        Args:
            rows: Iterable of column to value mappings
            now: Import time for rows without ``imported_at``

        Returns:
            Dictionary with imported and skipped counts
        """
        results = {'imported': 0, 'skipped': 0}

        for data in rows:
            if self.upsert_row(data, now=now) is None:
                results['skipped'] += 1
            else:
                results['imported'] += 1

        logger.info(f"Legacy history import finished: {results}")
        return results
