# supplier_replenishment/services/catalog_service.py
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from supplier_replenishment.exceptions import CollaboratorUnavailableError
from supplier_replenishment.interfaces import CatalogProvider
from supplier_replenishment.logging_setup import get_logger
from supplier_replenishment.models import Product, ProductMeta
from supplier_replenishment.records import ProductRecord
from supplier_replenishment.utils.math_utils import to_float
from supplier_replenishment.utils.validation import normalize_id

logger = get_logger(__name__)

# Tried in order; the later keys are older spellings still found on products
MONTHLY_CAP_META_KEYS = (
    'max_order_qty_per_month',
    'max_qty_per_month',
    'max_order_qty_per month',
)

SUPPLIER_META_KEYS = ('_sop_supplier_id', 'sop_supplier_id')

VISIBLE_PRODUCT_STATUSES = ('publish', 'private')


class CatalogService(CatalogProvider):
    """Service for reading products from the catalog."""

    def __init__(self, session: Session):
        """Initialize the catalog service.

        Args:
            session: Database session
        """
        self.session = session

    def get_product_model(self, product_id: int) -> Optional[Product]:
        """Get a product ORM object by ID.

        Args:
            product_id: Product ID

        Returns:
            Product object or None if not found
        """
        product_id = normalize_id(product_id)
        if not product_id:
            return None

        try:
            return self.session.query(Product).filter(Product.id == product_id).first()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailableError(
                f"Failed to load product {product_id}: {str(e)}",
                details={'product_id': product_id}
            )

    def get_product(self, product_id: int) -> Optional[ProductRecord]:
        """Get a product snapshot.

        Variations inherit the creation date of their parent product.

        Args:
            product_id: Product ID

        Returns:
            ProductRecord or None if not found
        """
        product = self.get_product_model(product_id)
        if product is None:
            return None

        created_at = product.created_at
        if product.parent_id:
            parent = self.get_product_model(product.parent_id)
            if parent is not None and parent.created_at is not None:
                created_at = parent.created_at

        return ProductRecord(
            id=product.id,
            sku=product.sku or '',
            name=product.name or '',
            stock_quantity=product.stock_quantity or 0,
            parent_id=product.parent_id or None,
            created_at=created_at
        )

    def get_meta_value(self, product_id: int, meta_key: str) -> Optional[str]:
        """Get a single meta value for a product."""
        try:
            row = self.session.query(ProductMeta.meta_value).filter(
                ProductMeta.product_id == product_id,
                ProductMeta.meta_key == meta_key
            ).first()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailableError(
                f"Failed to read meta {meta_key} for product {product_id}: {str(e)}"
            )

        return row[0] if row else None

    def _first_positive_cap(self, product_id: int) -> float:
        for meta_key in MONTHLY_CAP_META_KEYS:
            value = to_float(self.get_meta_value(product_id, meta_key))
            if value > 0:
                return value
        return 0.0

    def get_monthly_cap(self, product_id: int) -> float:
        """Get the maximum order quantity per month.

        The product's own meta is checked first, then its parent's. Within
        each, keys are tried in priority order and the first positive value
        wins.

        Args:
            product_id: Product ID

        Returns:
            Monthly cap, or 0.0 when uncapped
        """
        product = self.get_product_model(product_id)
        if product is None:
            return 0.0

        cap = self._first_positive_cap(product.id)
        if cap > 0:
            return cap

        if product.parent_id:
            return self._first_positive_cap(product.parent_id)

        return 0.0

    def get_products_for_supplier(self, supplier_id: int) -> List[int]:
        """Get ids of all visible products and variations mapped to a supplier.

        Args:
            supplier_id: Supplier ID

        Returns:
            Sorted list of product IDs
        """
        supplier_id = normalize_id(supplier_id)
        if not supplier_id:
            return []

        try:
            rows = self.session.query(Product.id).join(
                ProductMeta, ProductMeta.product_id == Product.id
            ).filter(
                Product.product_type.in_(('simple', 'variable', 'variation')),
                Product.status.in_(VISIBLE_PRODUCT_STATUSES),
                ProductMeta.meta_key.in_(SUPPLIER_META_KEYS),
                ProductMeta.meta_value == str(supplier_id)
            ).distinct().order_by(Product.id).all()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailableError(
                f"Failed to list products for supplier {supplier_id}: {str(e)}",
                details={'supplier_id': supplier_id}
            )

        logger.debug(f"Found {len(rows)} products for supplier {supplier_id}")
        return [row[0] for row in rows]

    def get_zero_stock_products(self) -> List[Product]:
        """Get stock-managed products and variations with no stock left.

        Variable parents are skipped; their stock is held by the variations.
        """
        try:
            return self.session.query(Product).filter(
                Product.manage_stock.is_(True),
                or_(Product.product_type.is_(None), Product.product_type != 'variable'),
                or_(Product.stock_quantity <= 0, Product.stock_quantity.is_(None))
            ).order_by(Product.id).all()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailableError(f"Failed to list zero stock products: {str(e)}")
