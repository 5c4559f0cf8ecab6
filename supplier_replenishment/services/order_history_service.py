# supplier_replenishment/services/order_history_service.py
from datetime import datetime
from typing import Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from supplier_replenishment.exceptions import CollaboratorUnavailableError
from supplier_replenishment.interfaces import ALLOWED_ORDER_STATUSES, OrderHistoryProvider
from supplier_replenishment.models import SalesOrder, SalesOrderLine
from supplier_replenishment.utils.validation import is_valid_window, normalize_id


class OrderHistoryService(OrderHistoryProvider):
    """Service for aggregating order history."""

    def __init__(self, session: Session):
        """Initialize the order history service.

        Args:
            session: Database session
        """
        self.session = session

    def sum_quantity_sold(
        self,
        product_id: int,
        from_ts: datetime,
        to_ts: datetime,
        allowed_statuses: Sequence[str] = ALLOWED_ORDER_STATUSES
    ) -> int:
        """Sum ordered quantity of a product in orders created in [from_ts, to_ts).

        Args:
            product_id: Product ID
            from_ts: Window start (inclusive)
            to_ts: Window end (exclusive)
            allowed_statuses: Order statuses that count as sales

        Returns:
            Total quantity sold
        """
        product_id = normalize_id(product_id)
        if not product_id or not is_valid_window(from_ts, to_ts) or not allowed_statuses:
            return 0

        try:
            total = self.session.query(
                func.coalesce(func.sum(SalesOrderLine.quantity), 0)
            ).join(
                SalesOrder, SalesOrderLine.order_id == SalesOrder.id
            ).filter(
                SalesOrderLine.product_id == product_id,
                SalesOrder.status.in_(tuple(allowed_statuses)),
                SalesOrder.date_created >= from_ts,
                SalesOrder.date_created < to_ts
            ).scalar()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailableError(
                f"Failed to sum sales for product {product_id}: {str(e)}",
                details={'product_id': product_id}
            )

        return int(total or 0)
