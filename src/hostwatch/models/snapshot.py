"""
Measurement and cache data models.

Every record here is immutable. A refresh cycle builds a fresh set of records
and the cache swaps them in as one unit, so readers never see a mix of two
cycles.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .config import ProbeProtocol, Target

UNKNOWN = "Unknown"

# Latency reported for targets that did not answer.
OFFLINE_LATENCY_MS = -1


class ProbeStatus(Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single reachability check against a target."""

    target_name: str
    status: ProbeStatus
    # Whole milliseconds; -1 when offline.
    latency_ms: int
    protocol: ProbeProtocol
    port: Optional[int] = None
    service: Optional[str] = None

    @classmethod
    def online(cls, target: Target, latency_ms: int) -> "ProbeResult":
        return cls(
            target_name=target.name,
            status=ProbeStatus.ONLINE,
            latency_ms=max(0, int(latency_ms)),
            protocol=target.protocol,
            port=target.port,
            service=target.service,
        )

    @classmethod
    def offline(cls, target: Target) -> "ProbeResult":
        return cls(
            target_name=target.name,
            status=ProbeStatus.OFFLINE,
            latency_ms=OFFLINE_LATENCY_MS,
            protocol=target.protocol,
            port=target.port,
            service=target.service,
        )

    @property
    def is_online(self) -> bool:
        return self.status is ProbeStatus.ONLINE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.target_name,
            "status": self.status.value,
            "latency_ms": self.latency_ms,
            "protocol": self.protocol.value,
            "port": self.port,
            "service": self.service,
        }


@dataclass(frozen=True)
class DiskVolume:
    """A mounted filesystem and its usage in bytes."""

    mount: str
    filesystem_type: str
    total_bytes: int
    used_bytes: int
    available_bytes: int
    device: str = ""

    @property
    def use_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return round(self.used_bytes / self.total_bytes * 100, 1)


@dataclass(frozen=True)
class CpuInfo:
    vendor: str = UNKNOWN
    brand: str = UNKNOWN
    cores: int = 0


@dataclass(frozen=True)
class MemoryUsage:
    total_bytes: int = 0
    used_bytes: int = 0
    available_bytes: int = 0
    percent: float = 0.0


@dataclass(frozen=True)
class DiskUsage:
    total_bytes: int = 0
    used_bytes: int = 0
    volumes: Tuple[DiskVolume, ...] = ()


@dataclass(frozen=True)
class StaticFacts:
    """
    Host facts that are expensive to gather and do not change while the
    process runs. Collected once at startup.
    """

    hostname: str = UNKNOWN
    cpu: CpuInfo = field(default_factory=CpuInfo)
    gpu: str = UNKNOWN
    # platform.system() value: "Linux", "Darwin", "Windows", ...
    system: str = UNKNOWN
    # OS release string; the product version on macOS.
    release: str = UNKNOWN
    arch: str = UNKNOWN
    # Distribution name as reported by the OS, when it has one.
    distro: str = UNKNOWN

    @classmethod
    def unknown(cls) -> "StaticFacts":
        return cls()


@dataclass(frozen=True)
class DynamicFacts:
    """Raw per-cycle host measurements, before platform normalization."""

    memory: MemoryUsage = field(default_factory=MemoryUsage)
    volumes: Tuple[DiskVolume, ...] = ()
    # (1m, 5m, 15m); None where the OS has no load average.
    load_average: Optional[Tuple[float, float, float]] = None
    cpu_percent: float = 0.0
    uptime_seconds: int = 0

    @classmethod
    def unknown(cls) -> "DynamicFacts":
        return cls()


@dataclass(frozen=True)
class MetricsSnapshot:
    """Normalized host metrics as served to consumers."""

    hostname: str
    os_name: str
    arch: str
    cpu: CpuInfo
    gpu: str
    # ((window, formatted value), ...) in LOAD_WINDOWS order.
    load_average: Tuple[Tuple[str, str], ...]
    uptime_seconds: int
    uptime_text: str
    disk: DiskUsage
    memory: MemoryUsage

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["load_average"] = dict(self.load_average)
        data["disk"]["volumes"] = [
            {**asdict(v), "use_percent": v.use_percent} for v in self.disk.volumes
        ]
        return data


@dataclass(frozen=True)
class CacheState:
    """
    The published state of the cache.

    ``available`` is False only before the first successful cycle; callers can
    tell "nothing measured yet" apart from a real zero reading.
    """

    snapshot: Optional[MetricsSnapshot]
    probe_results: Tuple[ProbeResult, ...]
    last_updated: Optional[datetime]
    available: bool
    # Number of successful publishes so far.
    cycle: int = 0

    @classmethod
    def unavailable(cls) -> "CacheState":
        return cls(snapshot=None, probe_results=(), last_updated=None, available=False, cycle=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "cycle": self.cycle,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "server": self.snapshot.to_dict() if self.snapshot else None,
            "targets": [r.to_dict() for r in self.probe_results],
        }
