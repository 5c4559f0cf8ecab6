# supplier_replenishment/services/settings_service.py
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from supplier_replenishment.config import config
from supplier_replenishment.interfaces import SettingsProvider
from supplier_replenishment.logging_setup import get_logger
from supplier_replenishment.models import StoreSettings
from supplier_replenishment.records import GlobalSettings
from supplier_replenishment.utils.math_utils import to_float, to_int

logger = get_logger(__name__)


class SettingsService(SettingsProvider):
    """Service for reading store-wide planning settings.

    The single ``store_settings`` row wins; anything missing falls back to
    the FORECAST and STOCKOUT sections of the configuration file.
    """

    def __init__(self, session: Session):
        """Initialize the settings service.

        Args:
            session: Database session
        """
        self.session = session
        self._global_settings = None

    def _load_row(self) -> Optional[StoreSettings]:
        try:
            return self.session.query(StoreSettings).order_by(StoreSettings.id).first()
        except SQLAlchemyError as e:
            logger.warning(f"Could not read store settings, using configured defaults: {str(e)}")
            return None

    def get_global_settings(self) -> GlobalSettings:
        """Get global settings, cached for the lifetime of the service.

        Returns:
            GlobalSettings with clamped values
        """
        if self._global_settings is None:
            defaults = config.forecast_defaults
            retention = config.stockout_config['log_retention_years']
            row = self._load_row()

            lookback = defaults['analysis_lookback_days']
            buffer_months = defaults['buffer_months_global']
            cycle_months = defaults['order_cycle_months']

            if row is not None:
                if row.analysis_lookback_days is not None:
                    lookback = to_int(row.analysis_lookback_days, lookback)
                if row.buffer_months_global is not None:
                    buffer_months = to_float(row.buffer_months_global, buffer_months)
                if row.order_cycle_months is not None:
                    cycle_months = to_float(row.order_cycle_months, cycle_months)
                if row.log_retention_years is not None:
                    retention = to_int(row.log_retention_years, retention)

            self._global_settings = GlobalSettings(
                buffer_months_global=max(0.0, buffer_months),
                analysis_lookback_days=max(1, lookback),
                order_cycle_months=max(1.0, cycle_months),
                log_retention_years=max(1, retention)
            )

        return self._global_settings
