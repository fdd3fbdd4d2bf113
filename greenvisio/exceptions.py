"""GreenVisio Exception Hierarchy.

Rich-context exceptions raised by the meeting damage engine.

Exception Hierarchy:
    GreenVisioException (base)
    ├── EngineException
    │   ├── ValidationError
    │   ├── ExecutionError
    │   └── ConfigurationError
    └── DataException
        ├── NotFoundError
        └── InvalidSchema

All exceptions carry:
- error_code: Unique error identifier
- component: Name of the component that raised the error
- context: Dictionary with error-specific details
- timestamp: When the error occurred

Example:
    >>> from greenvisio.exceptions import NotFoundError
    >>> raise NotFoundError(
    ...     message="Unknown hardware: SMARTWATCH",
    ...     context={"table": "hardware", "identifier": "SMARTWATCH"}
    ... )
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, Optional


# ==============================================================================
# Base Exception
# ==============================================================================

class GreenVisioException(Exception):
    """Base exception for all GreenVisio errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "GV_ENGINE_VALIDATION_ERROR")
        component: Name of the component that raised the error (optional)
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "GV"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize GreenVisio exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            component: Name of the component that raised the error
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.component = component
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Generate error code based on exception class.

        Returns:
            Error code like "GV_ENGINE_VALIDATION_ERROR"
        """
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "component": self.component,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        parts = [f"[{self.error_code}]"]
        if self.component:
            parts.append(f"Component: {self.component}")
        parts.append(self.message)
        return " - ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"component='{self.component}')"
        )


# ==============================================================================
# Engine Exceptions
# ==============================================================================

class EngineException(GreenVisioException):
    """Base exception for errors raised while building or running a computation."""
    ERROR_PREFIX = "GV_ENGINE"


class ValidationError(EngineException):
    """Payload validation failed.

    Raised at construction time, before any damage arithmetic runs, when a
    payload field is missing or out of range.

    Example:
        >>> raise ValidationError(
        ...     message="Journey distance must be positive",
        ...     component="Journey",
        ...     invalid_fields={"distance": "must be > 0, got -3"}
        ... )
    """

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        invalid_fields: Optional[Dict[str, str]] = None,
    ):
        """Initialize validation error.

        Args:
            message: Error message
            component: Name of the component
            context: Error context
            invalid_fields: Dictionary of field_name -> reason
        """
        if invalid_fields:
            context = context or {}
            context["invalid_fields"] = invalid_fields
        super().__init__(message, component=component, context=context)

    @property
    def invalid_fields(self) -> Dict[str, str]:
        return self.context.get("invalid_fields", {})


class ExecutionError(EngineException):
    """A computation was used in an invalid state.

    Example:
        >>> raise ExecutionError(
        ...     message="Meeting damage has not been computed",
        ...     component="MeetingDamage",
        ...     step="total_damage",
        ... )
    """

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        step: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        context = context or {}
        if step:
            context["step"] = step
        if cause:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        super().__init__(message, component=component, context=context)


class ConfigurationError(EngineException):
    """Engine configuration is invalid."""
    pass


# ==============================================================================
# Data Exceptions
# ==============================================================================

class DataException(GreenVisioException):
    """Base exception for reference database errors."""
    ERROR_PREFIX = "GV_DATA"


class NotFoundError(DataException):
    """An identifier referenced by a payload is absent from the reference database.

    Example:
        >>> raise NotFoundError(
        ...     message="Unknown transportation mean: ROCKET",
        ...     table="transport",
        ...     identifier="ROCKET",
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        table: Optional[str] = None,
        identifier: Optional[str] = None,
    ):
        """Initialize not-found error.

        Args:
            message: Error message
            context: Error context
            table: Reference table that was searched
            identifier: Identifier that could not be resolved
        """
        context = context or {}
        if table:
            context["table"] = table
        if identifier:
            context["identifier"] = identifier
        super().__init__(message, context=context)


class InvalidSchema(DataException):
    """Reference data does not conform to the expected schema.

    Raised while loading the YAML tables, never during a computation.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
        schema_errors: Optional[list] = None,
    ):
        context = context or {}
        if source:
            context["source"] = source
        if schema_errors:
            context["schema_errors"] = schema_errors
        super().__init__(message, context=context)


__all__ = [
    "GreenVisioException",
    "EngineException",
    "ValidationError",
    "ExecutionError",
    "ConfigurationError",
    "DataException",
    "NotFoundError",
    "InvalidSchema",
]
