# supplier_replenishment/batch/__init__.py

from .maintenance_job import run_daily_maintenance, prune_stockout_log, backfill_zero_stock

__all__ = [
    'run_daily_maintenance',
    'prune_stockout_log',
    'backfill_zero_stock'
]
