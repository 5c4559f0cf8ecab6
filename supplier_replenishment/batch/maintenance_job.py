# supplier_replenishment/batch/maintenance_job.py
import logging
from datetime import datetime
from typing import Dict, Optional

from supplier_replenishment.config import config
from supplier_replenishment.db import session_scope
from supplier_replenishment.exceptions import BatchProcessError
from supplier_replenishment.logging_setup import get_logger, logger as log_manager
from supplier_replenishment.services.settings_service import SettingsService
from supplier_replenishment.services.stockout_ledger import StockoutLedger

# Initialize logger
logger = get_logger('maintenance_job')
logger.setLevel(logging.INFO)

def prune_stockout_log(retention_years: Optional[int] = None, now: Optional[datetime] = None) -> Dict:
    """Delete stockout intervals older than the retention period.

    Args:
        retention_years: Retention in years (defaults to the store setting)
        now: Reference time

    Returns:
        Dictionary with prune results
    """
    with session_scope() as session:
        if retention_years is None:
            retention_years = SettingsService(session).get_global_settings().log_retention_years

        retention_years = max(1, int(retention_years))
        logger.info(f"Pruning stockout log, retention={retention_years} years")

        deleted = StockoutLedger(session).prune(retention_years, now=now)

    return {
        'retention_years': retention_years,
        'deleted': deleted
    }

def backfill_zero_stock(now: Optional[datetime] = None) -> Dict:
    """Open stockout intervals for products already sitting at zero stock.

    Args:
        now: Start time for the new intervals

    Returns:
        Dictionary with backfill results
    """
    logger.info("Backfilling stockouts for zero stock products")

    with session_scope() as session:
        opened = StockoutLedger(session).backfill_zero_stock(now=now)

    return {'opened': opened}

def run_daily_maintenance(
    retention_years: Optional[int] = None,
    backfill: Optional[bool] = None,
    now: Optional[datetime] = None
) -> Dict:
    """Run the daily stockout log maintenance.

    Args:
        retention_years: Retention override in years
        backfill: Whether to run the zero stock backfill (defaults to config)
        now: Reference time

    Returns:
        Dictionary with job results

    Raises:
        BatchProcessError: if any step fails
    """
    if backfill is None:
        backfill = config.stockout_config['backfill_on_maintenance']

    log_info = log_manager.batch_start_log(
        'daily_maintenance',
        {'retention_years': retention_years, 'backfill': backfill}
    )

    results = {
        'start_time': log_info['start_time'],
        'end_time': None,
        'processes': {}
    }

    try:
        # Step 1: Prune old intervals
        logger.info("# Step 1: Prune stockout log")
        results['processes']['prune'] = prune_stockout_log(retention_years, now=now)

        # Step 2: Backfill open intervals
        if backfill:
            logger.info("# Step 2: Backfill zero stock")
            results['processes']['backfill'] = backfill_zero_stock(now=now)

    except Exception as e:
        logger.error(f"Error during daily maintenance: {str(e)}", exc_info=True)
        log_manager.batch_end_log(log_info, success=False, result_info={'error': str(e)})
        raise BatchProcessError(
            f"Daily maintenance failed: {str(e)}",
            details={'processes': list(results['processes'])}
        )

    results['end_time'] = datetime.now()
    results['success'] = True

    log_manager.batch_end_log(log_info, success=True, result_info=results['processes'])
    return results

if __name__ == "__main__":
    run_daily_maintenance()
