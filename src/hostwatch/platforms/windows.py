"""
Windows normalization.

Windows has no load-average concept; instantaneous CPU utilisation is
reported in every load window instead.
"""

from typing import Dict, List

from ..models.snapshot import UNKNOWN, DynamicFacts, StaticFacts
from .base import PlatformNormalizer


class WindowsNormalizer(PlatformNormalizer):
    family = "windows"

    def load_average(self, facts: DynamicFacts) -> Dict[str, str]:
        return self._cpu_percent_as_load(facts.cpu_percent)

    def os_name(self, static: StaticFacts) -> str:
        if static.distro and static.distro != UNKNOWN:
            return static.distro
        return f"Windows {static.release}"

    def ping_command(self, address: str, timeout_ms: int) -> List[str]:
        return ["ping", "-n", "1", "-w", str(max(1, int(timeout_ms))), address]
