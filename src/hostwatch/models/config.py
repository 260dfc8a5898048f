"""
Configuration data models.

This module contains the configuration structures loaded once at startup:
the monitored targets and the engine's timing and concurrency settings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ProbeProtocol(Enum):
    """Reachability check used for a target."""
    ICMP = "ICMP"
    TCP = "TCP"


@dataclass(frozen=True)
class Target:
    """
    A configured server or service endpoint, loaded from the ``[[targets]]`` table.
    """

    # Display name, unique across the configuration.
    name: str
    # IP literal or hostname to probe.
    address: str
    # TCP port. When unset the target is checked with an ICMP echo.
    port: Optional[int] = None
    # Optional service label (e.g. "ssh", "https") carried through to results.
    service: Optional[str] = None

    @property
    def protocol(self) -> ProbeProtocol:
        return ProbeProtocol.TCP if self.port is not None else ProbeProtocol.ICMP


@dataclass
class MonitorConfig:
    """
    Engine settings, loaded from the ``[monitor]`` table of ``config.toml``.
    """

    refresh_interval_seconds: float = 10.0
    # Upper bound on simultaneous probes, also the batch size.
    probe_concurrency: int = 2
    tcp_timeout_ms: int = 1000
    icmp_timeout_ms: int = 800
    # Bound on a single blocking metrics collection call.
    collect_timeout_seconds: float = 5.0
    # Bound on the one-off static discovery at startup (sysctl, system_profiler, ...).
    static_collect_timeout_seconds: float = 30.0
    shutdown_grace_seconds: float = 5.0
    collector_workers: int = 2


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    # Ordered list of targets; probe results keep this order.
    targets: List[Target] = field(default_factory=list)
