import os
import configparser
import urllib.parse
from pathlib import Path

from supplier_replenishment.exceptions import ConfigError

class Config:
    """Configuration manager for the Supplier Replenishment Planner."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config_dir = Path(os.environ.get('SUPPLIER_REPLENISHMENT_CONFIG_DIR', 'config'))
        self._config_path = self._config_dir / 'settings.ini'
        self._config = configparser.ConfigParser(interpolation=None)

        # Create config directory if it doesn't exist
        if not self._config_dir.exists():
            self._config_dir.mkdir(parents=True)

        # Load config or create default
        if self._config_path.exists():
            self._config.read(self._config_path)
        else:
            self._create_default_config()

        self._initialized = True

    def _create_default_config(self):
        """Create default configuration file."""
        self._config['DATABASE'] = {
            'url': '',
            'engine': 'postgresql',
            'host': 'localhost',
            'port': '5432',
            'database': 'stock_order',
            'username': 'postgres',
            'password': 'postgres',
            'echo': 'False'
        }

        self._config['LOGGING'] = {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'directory': 'logs',
            'max_size_mb': '10',
            'backup_count': '5',
            'console_output': 'True'
        }

        self._config['FORECAST'] = {
            'analysis_lookback_days': '365',
            'buffer_months_global': '6',
            'order_cycle_months': '6'
        }

        self._config['STOCKOUT'] = {
            'log_retention_years': '5',
            'backfill_on_maintenance': 'False'
        }

        self._save_config()

    def _save_config(self):
        """Save configuration to file."""
        with open(self._config_path, 'w') as configfile:
            self._config.write(configfile)

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set(self, section, key, value):
        """Set configuration value."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))
        self._save_config()

    def get_db_url(self):
        """Generate SQLAlchemy database URL.

        A non-empty ``url`` in the DATABASE section wins over the
        individual connection fields.
        """
        url = self.get('DATABASE', 'url', '')
        if url:
            return url

        engine = self.get('DATABASE', 'engine', 'postgresql')
        username = self.get('DATABASE', 'username', 'postgres')
        password = self.get('DATABASE', 'password', 'postgres')
        host = self.get('DATABASE', 'host', 'localhost')
        port = self.get('DATABASE', 'port', '5432')
        database = self.get('DATABASE', 'database', 'stock_order')

        if not database:
            raise ConfigError("No database configured in the DATABASE section")

        password = urllib.parse.quote_plus(password)

        return f"{engine}://{username}:{password}@{host}:{port}/{database}"

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True)
        }

    @property
    def forecast_defaults(self):
        """Get forecast defaults used when no settings row is stored."""
        return {
            'analysis_lookback_days': max(1, self.get_int('FORECAST', 'analysis_lookback_days', 365)),
            'buffer_months_global': max(0.0, self.get_float('FORECAST', 'buffer_months_global', 6.0)),
            'order_cycle_months': max(1.0, self.get_float('FORECAST', 'order_cycle_months', 6.0))
        }

    @property
    def stockout_config(self):
        """Get stockout tracking configuration."""
        return {
            'log_retention_years': max(1, self.get_int('STOCKOUT', 'log_retention_years', 5)),
            'backfill_on_maintenance': self.get_boolean('STOCKOUT', 'backfill_on_maintenance', False)
        }

# Global config instance
config = Config()
