"""
Host metrics collection using psutil.

:class:`HostMetricsCollector` gathers two kinds of facts:

- static facts (hostname, CPU model, GPU, OS identity) that are expensive to
  discover and fixed for the process lifetime, collected once;
- dynamic facts (memory, mounted volumes, load, uptime) collected every cycle.

Both calls are blocking and are run in the engine's thread pool. Neither ever
raises: a failure is logged and the last good value is returned, or
"Unknown" defaults if nothing has been collected yet.
"""

import logging
import os
import platform
import socket
import time
from pathlib import Path
from typing import List, Optional, Tuple

import psutil

from ..models.snapshot import (
    UNKNOWN,
    CpuInfo,
    DiskVolume,
    DynamicFacts,
    MemoryUsage,
    StaticFacts,
)
from ..system.commands import DEFAULT_COMMAND_TIMEOUT, command_output
from ..validation import ErrorSeverity, handle_collector_error

logger = logging.getLogger(__name__)

VENDOR_NAMES = {
    "AuthenticAMD": "AMD",
    "GenuineIntel": "Intel",
}

_LSPCI_GPU_CLASSES = ("VGA compatible controller", "3D controller", "Display controller")


def format_vendor(vendor: str) -> str:
    """Map CPUID vendor strings to display names."""
    vendor = vendor.strip()
    return VENDOR_NAMES.get(vendor, vendor) or UNKNOWN


def parse_cpuinfo(text: str) -> Tuple[str, str]:
    """Extract (vendor, brand) from /proc/cpuinfo content."""
    vendor = ""
    brand = ""
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()
        if key == "vendor_id" and not vendor:
            vendor = value
        elif key in ("model name", "Model", "Hardware") and not brand:
            brand = value
        if vendor and brand:
            break
    return vendor, brand


def parse_lspci(text: str) -> List[str]:
    """Extract GPU model names from ``lspci`` output."""
    models = []
    for line in text.splitlines():
        for device_class in _LSPCI_GPU_CLASSES:
            marker = f"{device_class}: "
            if marker in line:
                models.append(line.split(marker, 1)[1].strip())
                break
    return models


def parse_system_profiler(text: str) -> List[str]:
    """Extract GPU model names from ``system_profiler SPDisplaysDataType``."""
    models = []
    for line in text.splitlines():
        key, sep, value = line.strip().partition(":")
        if sep and key == "Chipset Model" and value.strip():
            models.append(value.strip())
    return models


def parse_wmic_names(text: str) -> List[str]:
    """Extract values from ``wmic ... get name`` output (header line skipped)."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[1:]


class HostMetricsCollector:
    """
    Gathers host facts for the snapshot.

    Args:
        command_timeout: Bound in seconds on each external discovery command
        proc_root: Root of the proc filesystem (overridable for tests)
    """

    def __init__(self, command_timeout: float = DEFAULT_COMMAND_TIMEOUT, proc_root: Path = Path("/proc")):
        self.command_timeout = command_timeout
        self.proc_root = proc_root
        self.system = platform.system()
        self._last_static: Optional[StaticFacts] = None
        self._last_dynamic: Optional[DynamicFacts] = None

        # Prime non-blocking CPU measurement.
        try:
            psutil.cpu_percent(interval=None)
        except Exception as e:
            logger.debug(f"Could not prime CPU percent: {e}")

    @property
    def last_static(self) -> Optional[StaticFacts]:
        return self._last_static

    @property
    def last_dynamic(self) -> Optional[DynamicFacts]:
        return self._last_dynamic

    # --- Static facts ---

    def collect_static(self) -> StaticFacts:
        """
        Collect host identity facts. Intended to be called once at startup.

        Returns:
            StaticFacts; previous or "Unknown" values if collection fails
        """
        try:
            facts = StaticFacts(
                hostname=socket.gethostname() or UNKNOWN,
                cpu=self._cpu_info(),
                gpu=self._gpu_info(),
                system=self.system or UNKNOWN,
                release=self._os_release(),
                arch=platform.machine() or UNKNOWN,
                distro=self._distro(),
            )
        except Exception as e:
            handle_collector_error(
                error=e,
                context="collecting static host facts",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )
            return self._last_static or StaticFacts.unknown()

        self._last_static = facts
        logger.info(
            f"Host {facts.hostname}: {facts.system} {facts.release} ({facts.arch}), "
            f"CPU {facts.cpu.vendor} {facts.cpu.brand} x{facts.cpu.cores}, GPU {facts.gpu}"
        )
        return facts

    def _cpu_info(self) -> CpuInfo:
        vendor, brand = "", ""

        if self.system == "Linux":
            try:
                vendor, brand = parse_cpuinfo((self.proc_root / "cpuinfo").read_text(errors="replace"))
            except OSError as e:
                logger.debug(f"Could not read cpuinfo: {e}")
        elif self.system == "Darwin":
            brand = command_output(["sysctl", "-n", "machdep.cpu.brand_string"], self.command_timeout)
            vendor = command_output(["sysctl", "-n", "machdep.cpu.vendor"], self.command_timeout)
            if not vendor and brand.startswith("Apple"):
                vendor = "Apple"
        elif self.system == "Windows":
            names = parse_wmic_names(
                command_output(["wmic", "cpu", "get", "name"], self.command_timeout)
            )
            brand = names[0] if names else ""
            processor = platform.processor()
            vendor = processor.split()[-1] if processor else ""

        if not brand:
            brand = platform.processor()

        cores = psutil.cpu_count(logical=False) or psutil.cpu_count() or 0
        return CpuInfo(
            vendor=format_vendor(vendor) if vendor else UNKNOWN,
            brand=brand.strip() or UNKNOWN,
            cores=int(cores),
        )

    def _gpu_info(self) -> str:
        models: List[str] = []
        if self.system == "Linux":
            models = parse_lspci(command_output(["lspci"], self.command_timeout))
        elif self.system == "Darwin":
            models = parse_system_profiler(
                command_output(["system_profiler", "SPDisplaysDataType"], self.command_timeout)
            )
        elif self.system == "Windows":
            models = parse_wmic_names(
                command_output(["wmic", "path", "win32_VideoController", "get", "name"], self.command_timeout)
            )
        return ", ".join(models) if models else UNKNOWN

    def _os_release(self) -> str:
        if self.system == "Darwin":
            return platform.mac_ver()[0] or platform.release() or UNKNOWN
        return platform.release() or UNKNOWN

    def _distro(self) -> str:
        if self.system == "Linux":
            try:
                return platform.freedesktop_os_release().get("NAME", UNKNOWN)
            except OSError:
                return UNKNOWN
        if self.system == "Darwin":
            return "macOS"
        return UNKNOWN

    # --- Dynamic facts ---

    def collect_dynamic(self) -> DynamicFacts:
        """
        Collect per-cycle measurements.

        Returns:
            DynamicFacts; previous or "Unknown" values if collection fails
        """
        try:
            vm = psutil.virtual_memory()
            memory = MemoryUsage(
                total_bytes=int(vm.total),
                used_bytes=int(vm.used),
                available_bytes=int(vm.available),
                percent=float(vm.percent),
            )

            load_average = None
            if hasattr(os, "getloadavg"):
                load_average = tuple(float(v) for v in os.getloadavg())

            facts = DynamicFacts(
                memory=memory,
                volumes=tuple(self._volumes()),
                load_average=load_average,
                cpu_percent=float(psutil.cpu_percent(interval=None)),
                uptime_seconds=max(0, int(time.time() - psutil.boot_time())),
            )
        except Exception as e:
            handle_collector_error(
                error=e,
                context="collecting dynamic host metrics",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )
            return self._last_dynamic or DynamicFacts.unknown()

        self._last_dynamic = facts
        return facts

    def _volumes(self) -> List[DiskVolume]:
        volumes = []
        for partition in psutil.disk_partitions(all=False):
            # Empty optical drives on Windows.
            if "cdrom" in partition.opts:
                continue
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except OSError as e:
                logger.debug(f"Skipping unreadable mount {partition.mountpoint}: {e}")
                continue
            volumes.append(
                DiskVolume(
                    mount=partition.mountpoint,
                    filesystem_type=partition.fstype,
                    total_bytes=int(usage.total),
                    used_bytes=int(usage.used),
                    available_bytes=int(usage.free),
                    device=partition.device,
                )
            )
        return volumes
