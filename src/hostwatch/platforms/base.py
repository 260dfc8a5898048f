"""
Platform normalization base class.

All platform-specific corrections to raw collector and prober output live
behind :class:`PlatformNormalizer`. Each OS family overrides only the
capabilities whose behaviour differs:

- volume deduplication and disk aggregation
- load-average reporting
- OS display name
- probe latency bias correction
- the ICMP echo command line
"""

import logging
import math
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.snapshot import (
    UNKNOWN,
    DiskUsage,
    DiskVolume,
    DynamicFacts,
    MetricsSnapshot,
    ProbeResult,
    StaticFacts,
)

logger = logging.getLogger(__name__)

LOAD_WINDOWS: Tuple[str, ...] = ("1m", "5m", "15m")

_UPTIME_UNITS: Tuple[Tuple[str, int], ...] = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def format_uptime(uptime_seconds: float) -> str:
    """Render an uptime as the largest non-zero units, largest first.

    Examples:
        >>> format_uptime(90061)
        '1 day, 1 hour, 1 minute, 1 second'
        >>> format_uptime(7200)
        '2 hours'
    """
    remaining = max(0, int(uptime_seconds))
    parts: List[str] = []
    for label, seconds in _UPTIME_UNITS:
        count = remaining // seconds
        if count > 0:
            parts.append(f"{count} {label}{'s' if count > 1 else ''}")
            remaining %= seconds
    if not parts:
        return "0 seconds"
    return ", ".join(parts)


class PlatformNormalizer:
    """
    Generic normalizer; also the behaviour for unrecognised platforms.

    Args:
        arch: Machine architecture of the serving host (``platform.machine()``).
    """

    family = "generic"
    # Mount that holds user data; sorted ahead of all other volumes.
    data_mount: Optional[str] = None
    # Filesystem types that never represent user storage.
    ignored_fstypes: frozenset = frozenset()

    def __init__(self, arch: str = UNKNOWN):
        self.arch = arch

    # --- Disk ---

    def is_ignored_volume(self, volume: DiskVolume) -> bool:
        """Return True for mounts that must not count towards disk totals."""
        return volume.filesystem_type.lower() in self.ignored_fstypes

    def dedupe_volumes(self, volumes: Iterable[DiskVolume]) -> List[DiskVolume]:
        """
        Reduce raw mounts to one entry per logical volume.

        Ignored and zero-sized mounts are dropped, repeated mount paths keep
        their first entry, and the result is sorted with the data mount first
        and the rest lexicographically by mount path. Running it on its own
        output returns the same list.
        """
        seen_mounts = set()
        kept: List[DiskVolume] = []
        for volume in volumes:
            if volume.total_bytes <= 0 or self.is_ignored_volume(volume):
                continue
            if volume.mount in seen_mounts:
                continue
            seen_mounts.add(volume.mount)
            kept.append(volume)
        return sorted(kept, key=self._volume_sort_key)

    def _volume_sort_key(self, volume: DiskVolume) -> Tuple[bool, str]:
        return (volume.mount != self.data_mount, volume.mount)

    def aggregate_disk(self, volumes: Iterable[DiskVolume]) -> DiskUsage:
        """Sum totals over the deduplicated volume set."""
        deduped = self.dedupe_volumes(volumes)
        return DiskUsage(
            total_bytes=sum(v.total_bytes for v in deduped),
            used_bytes=sum(v.used_bytes for v in deduped),
            volumes=tuple(deduped),
        )

    # --- Load ---

    def load_average(self, facts: DynamicFacts) -> Dict[str, str]:
        """1/5/15-minute load averages, or CPU utilisation where there are none."""
        if facts.load_average is None:
            return self._cpu_percent_as_load(facts.cpu_percent)
        return {
            window: f"{value:.2f}" for window, value in zip(LOAD_WINDOWS, facts.load_average)
        }

    @staticmethod
    def _cpu_percent_as_load(cpu_percent: float) -> Dict[str, str]:
        value = f"{cpu_percent:.2f}"
        return {window: value for window in LOAD_WINDOWS}

    # --- OS name ---

    def os_name(self, static: StaticFacts) -> str:
        if static.distro and static.distro != UNKNOWN:
            return static.distro
        return static.system

    # --- Probe latency ---

    def adjust_latency(self, latency_ms: int) -> int:
        """Apply the host's transport latency correction. Never negative."""
        return max(0, int(latency_ms))

    def normalize_probe_results(self, results: Sequence[ProbeResult]) -> List[ProbeResult]:
        """Correct the latency of Online results; Offline results pass through."""
        normalized: List[ProbeResult] = []
        for result in results:
            if result.is_online:
                adjusted = self.adjust_latency(result.latency_ms)
                if adjusted != result.latency_ms:
                    result = replace(result, latency_ms=adjusted)
            normalized.append(result)
        return normalized

    # --- ICMP ---

    def ping_command(self, address: str, timeout_ms: int) -> List[str]:
        """Argument vector for a single ICMP echo (Linux iputils syntax)."""
        timeout_s = max(1, math.ceil(timeout_ms / 1000))
        return ["ping", "-n", "-c", "1", "-W", str(timeout_s), address]

    # --- Snapshot ---

    def build_snapshot(self, static: StaticFacts, dynamic: DynamicFacts) -> MetricsSnapshot:
        """Combine static and per-cycle facts into a normalized snapshot."""
        return MetricsSnapshot(
            hostname=static.hostname,
            os_name=self.os_name(static),
            arch=static.arch,
            cpu=static.cpu,
            gpu=static.gpu,
            load_average=tuple(self.load_average(dynamic).items()),
            uptime_seconds=int(dynamic.uptime_seconds),
            uptime_text=format_uptime(dynamic.uptime_seconds),
            disk=self.aggregate_disk(dynamic.volumes),
            memory=dynamic.memory,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(arch={self.arch!r})"
