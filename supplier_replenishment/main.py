import argparse
import csv
import json
import sys
from datetime import date

from tabulate import tabulate

from supplier_replenishment.db import db, session_scope
from supplier_replenishment.exceptions import LegacyImportError, SupplierReplenishmentError
from supplier_replenishment.logging_setup import logger, get_logger, log_exception
from supplier_replenishment.utils.validation import require_id

# Columns printed by the text output of the forecast command
FORECAST_COLUMNS = (
    ('product_id', 'ID', 'g'),
    ('sku', 'SKU', 'g'),
    ('current_stock', 'Stock', 'g'),
    ('qty_sold', 'Sold', 'g'),
    ('demand_per_day', 'Per day', '.3f'),
    ('lead_days', 'Lead', '.0f'),
    ('buffer_days', 'Buffer', '.1f'),
    ('stock_at_arrival', 'At arrival', '.1f'),
    ('suggested_raw', 'Raw', '.1f'),
    ('max_for_cycle', 'Cycle cap', '.0f'),
    ('suggested_capped', 'Suggested', '.1f'),
)

def init_application():
    """Initialize application components."""
    db.initialize()

    log = logger.app_logger
    log.info("Supplier Replenishment Planner initialized")
    log.info(f"Using database engine: {db.engine.url.get_backend_name()}")

    return True

def init_database(args):
    """Create (and optionally first drop) all tables."""
    log = get_logger('setup')

    if args.drop:
        log.warning("Dropping all tables")
        db.drop_all_tables()

    db.create_all_tables()
    log.info("Database tables created")
    print("Database tables created")
    return 0

def format_forecast_table(rows):
    """Render forecast rows as a plain text table.

    Args:
        rows: List of row dictionaries

    Returns:
        Table as a string
    """
    table_data = [[row.get(key) for key, _, _ in FORECAST_COLUMNS] for row in rows]

    return tabulate(
        table_data,
        headers=[title for _, title, _ in FORECAST_COLUMNS],
        floatfmt=[fmt for _, _, fmt in FORECAST_COLUMNS]
    )

def generate_forecast(args):
    """Print the suggested order quantities of one supplier.

    Args:
        args: Command-line arguments with forecast parameters
    """
    from supplier_replenishment.services.forecast_service import build_forecast_engine

    log = get_logger('forecast')
    supplier_id = require_id(args.supplier_id, 'supplier_id')
    log.info(f"Starting forecast for supplier {supplier_id} as of {args.as_of or 'today'}")

    with session_scope() as session:
        engine = build_forecast_engine(session)
        rows = [row.to_dict() for row in engine.forecast_supplier(supplier_id, as_of_date=args.as_of)]

    if args.json:
        print(json.dumps(rows, indent=2, default=str))
    elif rows:
        print(format_forecast_table(rows))
    else:
        print(f"No products to forecast for supplier {supplier_id}")

    log.info(f"Forecast completed: {len(rows)} rows")
    return 0

def run_maintenance(args):
    """Run the stockout log maintenance job."""
    from supplier_replenishment.batch.maintenance_job import run_daily_maintenance

    results = run_daily_maintenance(
        retention_years=args.retention_years,
        backfill=True if args.backfill else None
    )

    for name, result in results['processes'].items():
        print(f"{name}: {result}")
    return 0

def import_legacy(args):
    """Import legacy product history from a CSV file."""
    from supplier_replenishment.services.legacy_history_service import LegacyHistoryService

    log = get_logger('legacy_import')
    log.info(f"Importing legacy history from {args.file}")

    try:
        with open(args.file, newline='', encoding='utf-8-sig') as handle:
            reader = csv.DictReader(handle)
            with session_scope() as session:
                results = LegacyHistoryService(session).import_rows(reader)
    except OSError as e:
        raise LegacyImportError(f"Cannot read {args.file}: {str(e)}")

    print(f"Imported {results['imported']} rows, skipped {results['skipped']}")
    return 0

def build_parser():
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(description='Supplier Replenishment Planner')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    init_parser = subparsers.add_parser('init-db', help='Create the database schema')
    init_parser.add_argument('--drop', action='store_true',
                             help='Drop existing tables before creating them')

    forecast_parser = subparsers.add_parser('forecast', help='Suggest order quantities for a supplier')
    forecast_parser.add_argument('--supplier-id', required=True, help='Supplier ID')
    forecast_parser.add_argument('--as-of', type=date.fromisoformat, default=None,
                                 help='Last day of the analysis window (YYYY-MM-DD)')
    forecast_parser.add_argument('--json', action='store_true',
                                 help='Print rows as JSON')

    maintenance_parser = subparsers.add_parser('maintenance', help='Prune and backfill the stockout log')
    maintenance_parser.add_argument('--retention-years', type=int, default=None,
                                    help='Keep stockout intervals for this many years')
    maintenance_parser.add_argument('--backfill', action='store_true',
                                    help='Open intervals for products already at zero stock')

    import_parser = subparsers.add_parser('import-legacy', help='Import legacy product history')
    import_parser.add_argument('file', help='CSV file with one row per product')

    return parser

COMMANDS = {
    'init-db': init_database,
    'forecast': generate_forecast,
    'maintenance': run_maintenance,
    'import-legacy': import_legacy,
}

def main(argv=None):
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    init_application()

    try:
        return COMMANDS[args.command](args)
    except SupplierReplenishmentError as e:
        log_exception('main', e, f"{args.command} failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1

if __name__ == "__main__":
    sys.exit(main())
