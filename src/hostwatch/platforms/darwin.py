"""
macOS normalization.

APFS exposes one container as several overlapping mounts (sealed system
snapshot at ``/``, the Data volume, VM/Preboot/Update helpers). Only the Data
volume and user-visible external volumes are counted.
"""

from typing import List

from ..models.snapshot import UNKNOWN, DiskVolume, StaticFacts
from .base import PlatformNormalizer

DATA_VOLUME_MOUNT = "/System/Volumes/Data"

IGNORED_MOUNTS = frozenset({
    "/",
    "/System/Volumes/VM",
    "/System/Volumes/Preboot",
    "/System/Volumes/Update",
    "/System/Volumes/xarts",
    "/System/Volumes/iSCPreboot",
    "/System/Volumes/Hardware",
})

MACOS_CODENAMES = {
    "10.0": "Cheetah",
    "10.1": "Puma",
    "10.2": "Jaguar",
    "10.3": "Panther",
    "10.4": "Tiger",
    "10.5": "Leopard",
    "10.6": "Snow Leopard",
    "10.7": "Lion",
    "10.8": "Mountain Lion",
    "10.9": "Mavericks",
    "10.10": "Yosemite",
    "10.11": "El Capitan",
    "10.12": "Sierra",
    "10.13": "High Sierra",
    "10.14": "Mojave",
    "10.15": "Catalina",
    "11": "Big Sur",
    "12": "Monterey",
    "13": "Ventura",
    "14": "Sonoma",
    "15": "Sequoia",
    "26": "Tahoe",
}

# Apple Silicon Mac mini LAN adds a measured ~1 ms to every probe.
ARM64_LATENCY_OFFSET_MS = 1


def macos_codename(version: str) -> str:
    """Look up the marketing name for a macOS product version, or ''."""
    parts = version.split(".")
    if parts[0] == "10" and len(parts) > 1:
        return MACOS_CODENAMES.get(f"10.{parts[1]}", "")
    return MACOS_CODENAMES.get(parts[0], "")


class DarwinNormalizer(PlatformNormalizer):
    family = "darwin"
    data_mount = DATA_VOLUME_MOUNT
    ignored_fstypes = frozenset({"devfs", "autofs", "nullfs"})

    def is_ignored_volume(self, volume: DiskVolume) -> bool:
        if volume.mount in IGNORED_MOUNTS or volume.mount.startswith("/private/"):
            return True
        return super().is_ignored_volume(volume)

    def os_name(self, static: StaticFacts) -> str:
        if not static.release or static.release == UNKNOWN:
            return "macOS"
        release = static.release
        codename = macos_codename(release)
        if codename:
            return f"macOS {codename} {release}"
        return f"macOS {release}"

    def adjust_latency(self, latency_ms: int) -> int:
        if self.arch in ("arm64", "aarch64"):
            return max(0, int(latency_ms) - ARM64_LATENCY_OFFSET_MS)
        return super().adjust_latency(latency_ms)

    def ping_command(self, address: str, timeout_ms: int) -> List[str]:
        # BSD ping: -W is the reply wait in milliseconds.
        return ["ping", "-n", "-c", "1", "-W", str(max(1, int(timeout_ms))), address]
