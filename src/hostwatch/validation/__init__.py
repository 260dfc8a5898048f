"""
Validation and error handling for the hostwatch package.

This module provides input validation for configuration data and the error
handling primitives used by the collection engine.
"""

from .exceptions import (
    ErrorSeverity,
    ValidationError,
    handle_error,
    handle_cli_error,
    handle_collector_error,
    handle_config_error,
)
from .error_handler import CycleErrorContext, CycleErrorHandler, CycleErrorType
from .validators import (
    validate_address,
    validate_enum_choice,
    validate_non_empty_string,
    validate_port,
    validate_positive_float,
    validate_positive_integer,
    validate_target_name,
)

__all__ = [
    "ErrorSeverity",
    "ValidationError",
    "handle_error",
    "handle_cli_error",
    "handle_collector_error",
    "handle_config_error",
    "CycleErrorContext",
    "CycleErrorHandler",
    "CycleErrorType",
    "validate_address",
    "validate_enum_choice",
    "validate_non_empty_string",
    "validate_port",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_target_name",
]
