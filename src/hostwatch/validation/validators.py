"""
Field validation functions.

Small, composable validators used by the configuration layer. Each returns the
normalised value or raises :class:`ValidationError` naming the offending field.
"""

import ipaddress
import re
from typing import Any, Iterable, List, Optional

from .exceptions import ValidationError

# RFC 1123 host labels, dot separated.
_HOSTNAME_RE = re.compile(
    r"^(?=.{1,253}$)([A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)"
    r"(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*\.?$"
)


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer inside the given bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number inside the given bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """Validate that a value is a string with visible content and strip it."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value.strip()


def validate_target_name(
    name: Any,
    existing_names: Optional[Iterable[str]] = None,
    field_name: str = "target.name"
) -> str:
    """
    Validate a target display name.

    Args:
        name: Name to validate
        existing_names: Names already accepted (for uniqueness check)
        field_name: Name of the field being validated

    Returns:
        Validated, stripped name

    Raises:
        ValidationError: If the name is empty or duplicated
    """
    name = validate_non_empty_string(name, field_name)

    if existing_names is not None and name in existing_names:
        raise ValidationError(
            f"{field_name} must be unique, '{name}' already exists",
            field_name=field_name,
            value=name
        )

    return name


def validate_address(address: Any, field_name: str = "target.address") -> str:
    """
    Validate that an address is an IPv4/IPv6 literal or a well-formed hostname.

    Args:
        address: Address to validate
        field_name: Name of the field being validated

    Returns:
        Validated address

    Raises:
        ValidationError: If the address is malformed
    """
    address = validate_non_empty_string(address, field_name)

    try:
        ipaddress.ip_address(address)
        return address
    except ValueError:
        pass

    if not _HOSTNAME_RE.match(address):
        raise ValidationError(
            f"{field_name} is not a valid IP address or hostname: {address}",
            field_name=field_name,
            value=address
        )
    return address


def validate_port(port: Any, field_name: str = "target.port") -> Optional[int]:
    """
    Validate an optional TCP port.

    ``None`` and the legacy ``-1`` marker both mean "no port" (ICMP probing).

    Args:
        port: Port value to validate
        field_name: Name of the field being validated

    Returns:
        Port number, or None when no port is configured

    Raises:
        ValidationError: If the port is outside 1-65535
    """
    if port is None:
        return None
    if not isinstance(port, bool) and isinstance(port, int) and port == -1:
        return None
    return validate_positive_integer(port, min_value=1, max_value=65535, field_name=field_name)


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value"
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: List of valid choices
        field_name: Name of the field being validated

    Returns:
        Validated choice

    Raises:
        ValidationError: If value is not a valid choice
    """
    if value not in valid_choices:
        raise ValidationError(
            f"{field_name} must be one of {valid_choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return value
