class SupplierReplenishmentError(Exception):
    """Base exception for Supplier Replenishment Planner errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Supplier Replenishment Planner"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class ConfigError(SupplierReplenishmentError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class DatabaseError(SupplierReplenishmentError):
    """Exception raised for database-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class InvalidInputError(SupplierReplenishmentError):
    """Exception raised for non-positive ids and malformed windows."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Invalid input"
        super().__init__(message, code, details)


class CollaboratorUnavailableError(SupplierReplenishmentError):
    """Exception raised when a catalog, order or supplier lookup fails."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Data source unavailable"
        super().__init__(message, code, details)


class ComputationError(SupplierReplenishmentError):
    """Exception raised for failures while forecasting a single product."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Forecast computation error"
        super().__init__(message, code, details)


class StockoutLedgerError(SupplierReplenishmentError):
    """Exception raised for stockout ledger errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Stockout ledger error"
        super().__init__(message, code, details)


class LegacyImportError(SupplierReplenishmentError):
    """Exception raised for legacy history import errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Legacy history import error"
        super().__init__(message, code, details)


class BatchProcessError(SupplierReplenishmentError):
    """Exception raised for batch process errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Batch process error"
        super().__init__(message, code, details)
