"""
Target reachability probing.

:class:`Prober` checks a list of targets in bounded batches, choosing a TCP
connect probe for targets with a port and an ICMP echo probe otherwise.
"""

from .prober import Prober
from .probes import IcmpEchoProbe, ProbeFailed, ProbeFunc, parse_ping_latency, tcp_connect_probe

__all__ = [
    "IcmpEchoProbe",
    "ProbeFailed",
    "ProbeFunc",
    "Prober",
    "parse_ping_latency",
    "tcp_connect_probe",
]
