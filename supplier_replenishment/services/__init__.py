from .catalog_service import CatalogService
from .order_history_service import OrderHistoryService
from .supplier_service import SupplierService
from .settings_service import SettingsService
from .legacy_history_service import LegacyHistoryService
from .stockout_ledger import StockoutLedger
from .policy_resolver import SupplierPolicyResolver
from .demand_summarizer import DemandSummarizer
from .forecast_service import ForecastEngine, build_forecast_engine

__all__ = [
    'CatalogService',
    'OrderHistoryService',
    'SupplierService',
    'SettingsService',
    'LegacyHistoryService',
    'StockoutLedger',
    'SupplierPolicyResolver',
    'DemandSummarizer',
    'ForecastEngine',
    'build_forecast_engine'
]
