"""
Linux normalization.

Snap packages, container layers and bind mounts show up as extra mounts of
storage that is already counted. Read-only image filesystems and RAM-backed
mounts are ignored, and each block device is counted once.
"""

from typing import Iterable, List

from ..models.snapshot import DiskVolume
from .base import PlatformNormalizer


class LinuxNormalizer(PlatformNormalizer):
    family = "linux"
    data_mount = "/"
    ignored_fstypes = frozenset({"squashfs", "overlay", "tmpfs", "devtmpfs", "ramfs"})

    def dedupe_volumes(self, volumes: Iterable[DiskVolume]) -> List[DiskVolume]:
        # Sorting first means the shortest mount path of a device wins.
        ordered = super().dedupe_volumes(volumes)
        seen_devices = set()
        kept: List[DiskVolume] = []
        for volume in ordered:
            if volume.device:
                if volume.device in seen_devices:
                    continue
                seen_devices.add(volume.device)
            kept.append(volume)
        return kept
