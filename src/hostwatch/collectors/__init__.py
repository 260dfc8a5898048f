"""
Host metrics collectors.

Provides :class:`HostMetricsCollector`, which reads static host identity once
and dynamic resource usage every refresh cycle, with stale-value fallback on
failure.
"""

from .host import HostMetricsCollector, format_vendor

__all__ = [
    "HostMetricsCollector",
    "format_vendor",
]
