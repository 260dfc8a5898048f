"""
Platform-specific normalization of collector and prober output.

Use :func:`get_normalizer` to obtain the variant for the running host; new
platform behaviour is added by subclassing :class:`PlatformNormalizer`.
"""

import logging
import platform
from typing import Dict, Optional, Type

from ..models.snapshot import UNKNOWN
from .base import LOAD_WINDOWS, PlatformNormalizer, format_uptime
from .darwin import DarwinNormalizer, MACOS_CODENAMES, macos_codename
from .linux import LinuxNormalizer
from .windows import WindowsNormalizer

logger = logging.getLogger(__name__)

_NORMALIZERS: Dict[str, Type[PlatformNormalizer]] = {
    "Darwin": DarwinNormalizer,
    "Windows": WindowsNormalizer,
    "Linux": LinuxNormalizer,
}


def get_normalizer(system: Optional[str] = None, arch: Optional[str] = None) -> PlatformNormalizer:
    """
    Create the normalizer for a platform.

    Args:
        system: ``platform.system()`` value; defaults to the running host
        arch: ``platform.machine()`` value; defaults to the running host

    Returns:
        PlatformNormalizer variant for the platform family
    """
    system = system or platform.system()
    arch = arch or platform.machine() or UNKNOWN
    normalizer_cls = _NORMALIZERS.get(system, PlatformNormalizer)
    normalizer = normalizer_cls(arch=arch)
    logger.debug(f"Selected {normalizer!r} for system '{system}'")
    return normalizer


__all__ = [
    "LOAD_WINDOWS",
    "MACOS_CODENAMES",
    "DarwinNormalizer",
    "LinuxNormalizer",
    "PlatformNormalizer",
    "WindowsNormalizer",
    "format_uptime",
    "get_normalizer",
    "macos_codename",
]
