"""
hostwatch: lightweight infrastructure health monitor.

A background engine periodically measures host metrics (CPU, memory, disk,
load, uptime) and the reachability of configured targets, and serves the most
recent measurements on demand.

The package is organized into specialized modules:
- config: Configuration loading and validation
- models: Configuration and result data structures
- validation: Input validation and error handling
- system: Bounded subprocess helpers
- collectors: Host metrics collection
- platforms: Platform-specific normalization
- probing: ICMP and TCP reachability probes
- executor: Thread pool for blocking collection
- monitoring: Refresh scheduler and snapshot cache
- cli: Command-line interface

Usage:
    From command line:
        hostwatch --config conf/config.toml [--once]

    Programmatically:
        from hostwatch import RefreshScheduler, SnapshotCache, get_config
"""

from .config import clear_config_cache, get_config, load_config, set_config_path
from .collectors import HostMetricsCollector
from .monitoring import RefreshScheduler, SchedulerState, SnapshotCache
from .platforms import PlatformNormalizer, format_uptime, get_normalizer
from .probing import Prober
from .cli import main_cli

from .models import (
    AppConfig,
    CacheState,
    MetricsSnapshot,
    MonitorConfig,
    ProbeResult,
    ProbeStatus,
    Target,
)

from .validation import ErrorSeverity, ValidationError

__version__ = "0.1.0"

__all__ = [
    "get_config",
    "load_config",
    "clear_config_cache",
    "set_config_path",
    "HostMetricsCollector",
    "RefreshScheduler",
    "SchedulerState",
    "SnapshotCache",
    "PlatformNormalizer",
    "format_uptime",
    "get_normalizer",
    "Prober",
    "main_cli",
    "AppConfig",
    "CacheState",
    "MetricsSnapshot",
    "MonitorConfig",
    "ProbeResult",
    "ProbeStatus",
    "Target",
    "ErrorSeverity",
    "ValidationError",
]
