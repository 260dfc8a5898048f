"""
Configuration validation utilities.

This module turns raw TOML data into validated :class:`MonitorConfig` and
:class:`Target` instances. Malformed entries are rejected here, at startup,
rather than failing per probe at runtime.
"""

import logging
from typing import Any, Dict, List

from ..models.config import MonitorConfig, Target
from ..validation import (
    ValidationError,
    validate_address,
    validate_non_empty_string,
    validate_port,
    validate_positive_float,
    validate_positive_integer,
    validate_target_name,
)

logger = logging.getLogger(__name__)

_KNOWN_TARGET_KEYS = {"name", "address", "port", "service"}


def validate_monitor_config(monitor_data: Dict[str, Any]) -> MonitorConfig:
    """
    Validate and create a MonitorConfig from raw configuration data.

    Missing keys fall back to the MonitorConfig defaults.

    Args:
        monitor_data: Raw ``[monitor]`` table from TOML

    Returns:
        Validated MonitorConfig instance

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(monitor_data, dict):
        raise ValidationError("monitor must be a table", field_name="monitor")

    defaults = MonitorConfig()

    refresh_interval_seconds = validate_positive_float(
        monitor_data.get("refresh_interval_seconds", defaults.refresh_interval_seconds),
        min_value=1.0,
        max_value=3600.0,
        field_name="monitor.refresh_interval_seconds",
    )

    probe_concurrency = validate_positive_integer(
        monitor_data.get("probe_concurrency", defaults.probe_concurrency),
        min_value=1,
        max_value=256,
        field_name="monitor.probe_concurrency",
    )

    tcp_timeout_ms = validate_positive_integer(
        monitor_data.get("tcp_timeout_ms", defaults.tcp_timeout_ms),
        min_value=50,
        max_value=60000,
        field_name="monitor.tcp_timeout_ms",
    )

    icmp_timeout_ms = validate_positive_integer(
        monitor_data.get("icmp_timeout_ms", defaults.icmp_timeout_ms),
        min_value=50,
        max_value=60000,
        field_name="monitor.icmp_timeout_ms",
    )

    collect_timeout_seconds = validate_positive_float(
        monitor_data.get("collect_timeout_seconds", defaults.collect_timeout_seconds),
        min_value=0.5,
        max_value=120.0,
        field_name="monitor.collect_timeout_seconds",
    )

    static_collect_timeout_seconds = validate_positive_float(
        monitor_data.get("static_collect_timeout_seconds", defaults.static_collect_timeout_seconds),
        min_value=1.0,
        max_value=600.0,
        field_name="monitor.static_collect_timeout_seconds",
    )

    shutdown_grace_seconds = validate_positive_float(
        monitor_data.get("shutdown_grace_seconds", defaults.shutdown_grace_seconds),
        min_value=0.0,
        max_value=120.0,
        field_name="monitor.shutdown_grace_seconds",
    )

    collector_workers = validate_positive_integer(
        monitor_data.get("collector_workers", defaults.collector_workers),
        min_value=1,
        max_value=16,
        field_name="monitor.collector_workers",
    )

    # A cycle should finish before the next one is due.
    worst_case_probe_s = max(tcp_timeout_ms, icmp_timeout_ms) / 1000.0
    if worst_case_probe_s > refresh_interval_seconds:
        logger.warning(
            f"Probe timeout ({worst_case_probe_s:.1f}s) exceeds refresh interval "
            f"({refresh_interval_seconds:.1f}s); cycles may overrun"
        )

    unknown_keys = set(monitor_data) - set(MonitorConfig.__dataclass_fields__)
    if unknown_keys:
        logger.warning(f"Ignoring unknown monitor settings: {sorted(unknown_keys)}")

    return MonitorConfig(
        refresh_interval_seconds=refresh_interval_seconds,
        probe_concurrency=probe_concurrency,
        tcp_timeout_ms=tcp_timeout_ms,
        icmp_timeout_ms=icmp_timeout_ms,
        collect_timeout_seconds=collect_timeout_seconds,
        static_collect_timeout_seconds=static_collect_timeout_seconds,
        shutdown_grace_seconds=shutdown_grace_seconds,
        collector_workers=collector_workers,
    )


def validate_target(target_data: Dict[str, Any], existing_names: List[str], index: int) -> Target:
    """
    Validate a single raw target entry.

    Args:
        target_data: Raw target table
        existing_names: Names of targets validated so far
        index: Position in the targets array, for error messages

    Returns:
        Validated Target

    Raises:
        ValidationError: If the entry is malformed
    """
    prefix = f"targets[{index}]"

    name = validate_target_name(
        target_data.get("name"), existing_names=existing_names, field_name=f"{prefix}.name"
    )
    address = validate_address(target_data.get("address"), field_name=f"{prefix}.address")
    port = validate_port(target_data.get("port"), field_name=f"{prefix}.port")

    service = target_data.get("service")
    if service is not None:
        service = validate_non_empty_string(service, field_name=f"{prefix}.service")

    unknown_keys = set(target_data) - _KNOWN_TARGET_KEYS
    if unknown_keys:
        logger.warning(f"Ignoring unknown keys in {prefix} ('{name}'): {sorted(unknown_keys)}")

    return Target(name=name, address=address, port=port, service=service)


def validate_targets_config(targets_data: List[Dict[str, Any]]) -> List[Target]:
    """
    Validate the list of target configurations.

    Args:
        targets_data: Raw list of target dictionaries

    Returns:
        List of validated Target instances, in configuration order

    Raises:
        ValidationError: If any target is malformed or names repeat
    """
    targets: List[Target] = []
    names: List[str] = []
    for i, target_data in enumerate(targets_data):
        target = validate_target(target_data, names, i)
        targets.append(target)
        names.append(target.name)

    if not targets:
        logger.warning("No targets configured; only host metrics will be collected")

    return targets
