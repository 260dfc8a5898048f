"""
Data models for the health monitor.

Configuration Models:
- Targets to probe and engine settings, loaded once at startup

Measurement Models:
- Probe results, host facts (static and per-cycle), normalized snapshots
- The published cache state read by the serving layer

All models are dataclasses; measurement records are frozen.
"""

from .config import AppConfig, MonitorConfig, ProbeProtocol, Target
from .snapshot import (
    OFFLINE_LATENCY_MS,
    UNKNOWN,
    CacheState,
    CpuInfo,
    DiskUsage,
    DiskVolume,
    DynamicFacts,
    MemoryUsage,
    MetricsSnapshot,
    ProbeResult,
    ProbeStatus,
    StaticFacts,
)

__all__ = [
    "AppConfig",
    "MonitorConfig",
    "ProbeProtocol",
    "Target",
    "OFFLINE_LATENCY_MS",
    "UNKNOWN",
    "CacheState",
    "CpuInfo",
    "DiskUsage",
    "DiskVolume",
    "DynamicFacts",
    "MemoryUsage",
    "MetricsSnapshot",
    "ProbeResult",
    "ProbeStatus",
    "StaticFacts",
]
