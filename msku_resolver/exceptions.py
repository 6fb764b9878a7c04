"""
Custom exceptions for the MSKU resolver.

Provides a hierarchy of exceptions shared by the resolution engine,
the ingestion adapters and the web application.
"""

from typing import Optional, Dict, Any


class AppException(Exception):
    """Base error with an HTTP status and a stable error code."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Error body as returned by the API."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AppException):
    """Bad input from a caller (400)."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class InvalidArgumentError(ValidationError):
    """Raised when a required argument is missing or empty."""

    error_code = "INVALID_ARGUMENT"

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, details)


class FileValidationError(ValidationError):
    """A file could not be read or lacks required columns."""

    error_code = "FILE_VALIDATION_ERROR"

    def __init__(self, message: str, filename: Optional[str] = None, missing_columns: Optional[list] = None):
        details = {}
        if filename:
            details["filename"] = filename
        if missing_columns:
            details["missing_columns"] = missing_columns
        super().__init__(message, details)


class DuplicateMappingError(AppException):
    """Raised when a (sku, marketplace) pair is already mapped."""

    status_code = 409
    error_code = "DUPLICATE_MAPPING"

    def __init__(self, sku: str, marketplace: str):
        super().__init__(
            f"Mapping already exists for SKU {sku} in {marketplace}",
            details={"sku": sku, "marketplace": marketplace},
        )


class NotFoundError(AppException):
    """Base class for lookups that find nothing."""

    status_code = 404
    error_code = "NOT_FOUND"


class MappingNotFoundError(NotFoundError):
    """Raised when removing or addressing a mapping that does not exist."""

    error_code = "MAPPING_NOT_FOUND"

    def __init__(self, sku: str, marketplace: str):
        super().__init__(
            f"No mapping exists for SKU {sku} in {marketplace}",
            details={"sku": sku, "marketplace": marketplace},
        )


class NoMatchError(NotFoundError):
    """Raised when neither an exact nor a pattern match resolves a SKU."""

    error_code = "NO_MATCH"

    def __init__(self, sku: str, marketplace: str):
        super().__init__(
            f"No mapping found for SKU {sku} in {marketplace}",
            details={"sku": sku, "marketplace": marketplace},
        )


class ConfigurationError(AppException):
    """A configuration value is out of range."""

    status_code = 500
    error_code = "CONFIGURATION_ERROR"
