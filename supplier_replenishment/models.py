# supplier_replenishment/models.py
from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, ForeignKey, Text, Index
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

class StoreSettings(Base):
    """Store-wide planning settings. A single row is expected."""
    __tablename__ = 'store_settings'

    id = Column(Integer, primary_key=True)

    analysis_lookback_days = Column(Integer, default=365)
    buffer_months_global = Column(Float, default=6.0)
    order_cycle_months = Column(Float, default=6.0)
    log_retention_years = Column(Integer, default=5)

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

class Supplier(Base):
    __tablename__ = 'supplier'

    id = Column(Integer, primary_key=True)
    name = Column(String(191), nullable=False)
    slug = Column(String(191), nullable=False, unique=True)
    supplier_code = Column(String(100))
    currency = Column(String(10), nullable=False, default='GBP')

    # Lead time control factors
    lead_time_weeks = Column(Integer, nullable=False, default=0)
    holiday_extra_days = Column(Integer, nullable=False, default=0)

    # NULL means "use the global buffer months"
    buffer_months_override = Column(Float, nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

class Product(Base):
    """Catalog product or variation."""
    __tablename__ = 'product'

    id = Column(Integer, primary_key=True)
    parent_id = Column(Integer, ForeignKey('product.id'), nullable=True)
    sku = Column(String(100))
    name = Column(String(255), nullable=False)
    product_type = Column(String(20), default='simple')  # simple, variable, variation
    status = Column(String(20), default='publish')  # publish, private, draft, trash

    manage_stock = Column(Boolean, default=True)
    stock_quantity = Column(Integer)
    stock_status = Column(String(20), default='instock')  # instock, outofstock, onbackorder

    created_at = Column(DateTime, default=func.now())

    parent = relationship("Product", remote_side=[id], back_populates="variations")
    variations = relationship("Product", back_populates="parent")
    meta = relationship("ProductMeta", back_populates="product")

class ProductMeta(Base):
    __tablename__ = 'product_meta'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('product.id'), nullable=False)
    meta_key = Column(String(255), nullable=False)
    meta_value = Column(Text)

    product = relationship("Product", back_populates="meta")

    __table_args__ = (
        Index('idx_product_meta_key', 'product_id', 'meta_key'),
        Index('idx_product_meta_key_value', 'meta_key', 'meta_value'),
    )

class SalesOrder(Base):
    __tablename__ = 'sales_order'

    id = Column(Integer, primary_key=True)
    status = Column(String(20), nullable=False, default='pending')  # pending, processing, on-hold, completed, cancelled, refunded
    date_created = Column(DateTime, nullable=False, default=func.now())

    lines = relationship("SalesOrderLine", back_populates="order")

    __table_args__ = (
        Index('idx_sales_order_status_date', 'status', 'date_created'),
    )

class SalesOrderLine(Base):
    __tablename__ = 'sales_order_line'

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('sales_order.id'), nullable=False)
    product_id = Column(Integer, ForeignKey('product.id'), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)

    order = relationship("SalesOrder", back_populates="lines")

class StockoutLog(Base):
    """Periods during which a product or variation had no stock."""
    __tablename__ = 'stockout_log'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, nullable=False)
    variation_id = Column(Integer, nullable=False, default=0)
    date_start = Column(DateTime, nullable=False)
    date_end = Column(DateTime, nullable=True)  # NULL while the stockout is ongoing
    source = Column(String(50), default='runtime')
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now())

    __table_args__ = (
        Index('idx_stockout_log_product', 'product_id', 'variation_id'),
        Index('idx_stockout_log_dates', 'date_start', 'date_end'),
        # At most one open interval per product/variation
        Index(
            'uq_stockout_log_open',
            'product_id',
            'variation_id',
            unique=True,
            sqlite_where=date_end.is_(None),
            postgresql_where=date_end.is_(None)
        ),
    )

class LegacyProductHistory(Base):
    """Pre-migration aggregates imported once per product."""
    __tablename__ = 'legacy_product_history'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, nullable=False, unique=True)
    sku = Column(String(100))
    product_name = Column(String(255))
    supplier_id = Column(Integer)
    current_stock = Column(Integer)
    max_order_qty_per_month = Column(Integer)
    units_sold_12m = Column(Integer)
    revenue_12m = Column(Float)
    first_order_date_12m = Column(DateTime)
    last_order_date_12m = Column(DateTime)
    order_count_12m = Column(Integer)
    stockout_days_12m_legacy = Column(Integer)
    days_on_sale_12m_legacy = Column(Integer)
    avg_units_per_day_in_stock_12m_legacy = Column(Float)
    lost_units_12m_legacy = Column(Float)
    lost_revenue_12m_legacy = Column(Float)
    legacy_source_version = Column(String(50))
    imported_at = Column(DateTime)

    INTEGER_COLUMNS = (
        'product_id', 'supplier_id', 'current_stock', 'max_order_qty_per_month',
        'units_sold_12m', 'order_count_12m', 'stockout_days_12m_legacy',
        'days_on_sale_12m_legacy',
    )
    FLOAT_COLUMNS = (
        'revenue_12m', 'avg_units_per_day_in_stock_12m_legacy',
        'lost_units_12m_legacy', 'lost_revenue_12m_legacy',
    )
    DATE_COLUMNS = (
        'first_order_date_12m', 'last_order_date_12m', 'imported_at',
    )
