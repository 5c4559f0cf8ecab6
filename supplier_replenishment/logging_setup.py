import logging
import logging.handlers
from datetime import datetime
from pathlib import Path

from supplier_replenishment.config import config

PACKAGE_LOGGER = 'supplier_replenishment'
BATCH_CHANNEL = 'batch'

class Logger:
    """Logging manager for the Supplier Replenishment Planner.

    Every logger handed out lives under the ``supplier_replenishment``
    hierarchy. The package logger owns the console handler and the main
    rotating log file; children propagate to it. Batch jobs additionally
    write to their own ``batch.log``.
    """

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the logger if not already initialized."""
        if self._initialized:
            return

        self._log_config = config.log_config
        self._log_dir = Path(self._log_config['directory'])
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._formatter = logging.Formatter(self._log_config['format'])

        level_name = str(self._log_config['level']).upper()
        self._level = getattr(logging, level_name, logging.INFO)

        self._package_logger = self._configure(
            logging.getLogger(PACKAGE_LOGGER),
            f"{PACKAGE_LOGGER}.log",
            console=self._log_config['console_output']
        )
        self._package_logger.propagate = False

        self._batch_logger = self._configure(
            self.get_logger(BATCH_CHANNEL), f"{BATCH_CHANNEL}.log"
        )
        self._app_logger = self.get_logger('app')

        self._initialized = True

    def _configure(self, target, filename, console=False):
        target.setLevel(self._level)

        for handler in target.handlers[:]:
            target.removeHandler(handler)
            handler.close()

        file_handler = logging.handlers.RotatingFileHandler(
            self._log_dir / filename,
            maxBytes=self._log_config['max_size_mb'] * 1024 * 1024,
            backupCount=self._log_config['backup_count'],
            delay=True
        )
        file_handler.setFormatter(self._formatter)
        target.addHandler(file_handler)

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(self._formatter)
            target.addHandler(console_handler)

        return target

    @staticmethod
    def qualified_name(name):
        """Map a short or module name onto the package logger hierarchy."""
        name = (name or '').strip('.')
        if not name or name == PACKAGE_LOGGER:
            return PACKAGE_LOGGER
        if name.startswith(f"{PACKAGE_LOGGER}."):
            return name
        return f"{PACKAGE_LOGGER}.{name}"

    def get_logger(self, name):
        """Get a logger under the package hierarchy.

        Args:
            name: Module name (``__name__``) or short channel name

        Returns:
            Logger propagating to the package handlers
        """
        return logging.getLogger(self.qualified_name(name))

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception together with the active traceback."""
        text = f"{message}: {exception}" if message else str(exception)
        self.get_logger(logger_name).error(text, exc_info=exception)

    @property
    def app_logger(self):
        """Get the application logger."""
        return self._app_logger

    def batch_start_log(self, process_name, additional_info=None):
        """Log the start of a batch process.

        Returns:
            Dictionary handed back to ``batch_end_log``
        """
        start_time = datetime.now()
        self._batch_logger.info(
            f"Starting {process_name}" + (f" with {additional_info}" if additional_info else '')
        )

        return {
            'process_name': process_name,
            'start_time': start_time,
            'additional_info': additional_info
        }

    def batch_end_log(self, log_info, success=True, result_info=None):
        """Log the end of a batch process.

        Returns:
            Duration of the run in seconds
        """
        end_time = datetime.now()
        process_name = log_info.get('process_name', 'unknown')
        duration = (end_time - log_info.get('start_time', end_time)).total_seconds()

        level = logging.INFO if success else logging.ERROR
        outcome = 'completed' if success else 'failed'
        self._batch_logger.log(level, f"{process_name} {outcome} in {duration:.1f}s")

        if result_info:
            self._batch_logger.log(level, f"{process_name} results: {result_info}")

        return duration

# Global logger instance
logger = Logger()

def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)

def log_exception(logger_name, exception, message=None):
    """Log an exception with stack trace."""
    logger.log_exception(logger_name, exception, message)
