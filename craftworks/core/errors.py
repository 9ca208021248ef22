"""
Custom error classes with structured logging and error propagation.

All errors include correlation context and structured data for observability.
Each class picks the level it is logged at: lookups that are expected to
miss log at debug, real failures at error.
"""

from typing import Optional, Dict, Any
from craftworks.common.logging import get_logger
from craftworks.common.logging.correlation import get_correlation_id, get_session_id

logger = get_logger(__name__)


class CraftworksError(Exception):
    """
    Base error class for all framework errors.

    Automatically logs errors with correlation context when raised.
    """

    log_method = "error"

    def __init__(
        self,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        """
        Initialize error with structured context.

        Args:
            message: Human-readable error message
            data: Structured data for observability
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.data = data or {}
        self.cause = cause

        self.correlation_id = get_correlation_id()
        self.session_id = get_session_id()

        self._log_error()

    def _log_error(self):
        """Log error with structured data."""
        log_data = {
            "error_type": self.__class__.__name__,
            "correlation_id": self.correlation_id,
            "session_id": self.session_id,
            **self.data,
        }

        if self.cause:
            log_data["cause"] = str(self.cause)

        exc_info = None
        if self.cause is not None and self.log_method == "error":
            exc_info = (type(self.cause), self.cause, self.cause.__traceback__)

        getattr(logger, self.log_method)(
            self.message,
            data=log_data,
            exc_info=exc_info,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "data": self.data,
            "correlation_id": self.correlation_id,
            "session_id": self.session_id,
            "cause": str(self.cause) if self.cause else None,
        }


# Configuration errors
class ConfigurationError(CraftworksError):
    """No store, or no usable cache backend where one is required."""
    pass


# Schema errors
class SchemaError(CraftworksError):
    """Column metadata could not be loaded or is unusable."""
    pass


class TypeMappingError(SchemaError):
    """Native column type has no bind-type."""

    def __init__(self, native_type: str, relation: Optional[str] = None):
        super().__init__(
            f'Unknown data type "{native_type}"',
            data={"native_type": native_type, "relation": relation},
        )
        self.native_type = native_type


# Lookup errors
class NotFoundError(CraftworksError):
    """Unique-key lookup matched no row."""

    log_method = "debug"

    def __init__(self, entity_type: str, field: str, value: Any):
        super().__init__(
            f"Unable to find {entity_type} with {field} of value {value}",
            data={"entity": entity_type, "field": field, "value": value},
        )
        self.entity_type = entity_type
        self.field = field
        self.value = value


class ShapeMismatchError(CraftworksError):
    """Row handed to bulk creation does not match the declared fields."""
    pass


# Attribute errors
class ImmutableFieldError(CraftworksError):
    """Attempt to change the ID of an entity."""

    log_method = "warning"

    def __init__(self, entity_type: str, field: str = "ID"):
        super().__init__(
            f"Changing of {field} is not allowed",
            data={"entity": entity_type, "field": field},
        )
        self.entity_type = entity_type
        self.field = field


class UnknownAttributeError(CraftworksError, AttributeError):
    """Entity has no declared field with the requested name."""

    log_method = "debug"

    def __init__(self, entity_type: str, key: str):
        super().__init__(
            f'Missing key "{key}" in {entity_type}',
            data={"entity": entity_type, "key": key},
        )
        self.entity_type = entity_type
        self.key = key


class MissingIdentifierError(CraftworksError):
    """Entity has not been written yet, so it has no ID."""

    def __init__(self, entity_type: str):
        super().__init__(
            f"Unable to delete {entity_type} without ID",
            data={"entity": entity_type},
        )
        self.entity_type = entity_type


class EntityStateError(CraftworksError):
    """Operation not allowed in the entity's current lifecycle state."""
    pass


# Store errors
class StoreError(CraftworksError):
    """Relational store query failed."""
    pass


# Cache errors
class CacheError(CraftworksError):
    """Error accessing cache."""

    log_method = "warning"


class CacheNotFoundError(CacheError):
    """Key absent from the cache or expired."""

    log_method = "debug"

    def __init__(self, key: str):
        super().__init__(
            f'The key "{key}" was not found in the cache',
            data={"key": key},
        )
        self.key = key


class NoBackendError(CacheError):
    """No cache backend could be constructed."""

    log_method = "debug"

    def __init__(self, message: str = "No cache backend available", data: Optional[Dict[str, Any]] = None):
        super().__init__(message, data=data)
