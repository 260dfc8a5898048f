"""
Bounded-concurrency reachability prober.

Targets are split into consecutive batches of ``concurrency`` entries. Batches
run strictly one after another; the probes inside a batch run concurrently
and the whole batch is awaited before the next starts. A semaphore sized to
``concurrency`` gates every probe as well, so no more than ``concurrency``
connections or ping processes are ever open at once, however many targets
are configured.
"""

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from ..models.config import ProbeProtocol, Target
from ..models.snapshot import ProbeResult
from ..platforms import PlatformNormalizer, get_normalizer
from .probes import IcmpEchoProbe, ProbeFailed, ProbeFunc, tcp_connect_probe

logger = logging.getLogger(__name__)

# Hard ceiling on a probe beyond its own timeout, in case a probe
# implementation ignores the timeout it was given.
PROBE_DEADLINE_GRACE_S = 1.0


class Prober:
    """
    Executes reachability checks against targets.

    TCP connect probes are used for targets with a port, ICMP echo for the
    rest. Every failure, timeout or unexpected exception of a single probe
    becomes an Offline result for that target only.

    Args:
        normalizer: Platform normalizer for ping syntax and latency correction
        tcp_probe: TCP probe implementation (injectable for tests)
        icmp_probe: ICMP probe implementation (injectable for tests)
    """

    def __init__(
        self,
        normalizer: Optional[PlatformNormalizer] = None,
        tcp_probe: Optional[ProbeFunc] = None,
        icmp_probe: Optional[ProbeFunc] = None,
    ):
        self.normalizer = normalizer or get_normalizer()
        self.tcp_probe = tcp_probe or tcp_connect_probe
        self.icmp_probe = icmp_probe or IcmpEchoProbe(self.normalizer)

        self.stats = {
            "probes_run": 0,
            "probes_online": 0,
            "probes_offline": 0,
            "probes_errored": 0,
        }

    async def probe(
        self,
        targets: Sequence[Target],
        timeout_ms: int,
        concurrency: int,
        icmp_timeout_ms: Optional[int] = None,
    ) -> List[ProbeResult]:
        """
        Probe all targets in bounded batches.

        Args:
            targets: Targets to check, in display order
            timeout_ms: TCP connect timeout
            concurrency: Batch size and maximum simultaneous probes
            icmp_timeout_ms: ICMP reply timeout; defaults to ``timeout_ms``

        Returns:
            One ProbeResult per target, in the order of ``targets``

        Raises:
            ValueError: If concurrency is less than 1
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        icmp_timeout_ms = icmp_timeout_ms if icmp_timeout_ms is not None else timeout_ms
        semaphore = asyncio.Semaphore(concurrency)
        results: List[ProbeResult] = []

        for start in range(0, len(targets), concurrency):
            batch = targets[start:start + concurrency]
            batch_results = await asyncio.gather(
                *(self._probe_one(target, timeout_ms, icmp_timeout_ms, semaphore) for target in batch)
            )
            results.extend(batch_results)
            logger.debug(
                f"Probe batch {start // concurrency + 1}: "
                f"{sum(r.is_online for r in batch_results)}/{len(batch_results)} online"
            )

        return self.normalizer.normalize_probe_results(results)

    async def _probe_one(
        self,
        target: Target,
        timeout_ms: int,
        icmp_timeout_ms: int,
        semaphore: asyncio.Semaphore,
    ) -> ProbeResult:
        if target.protocol is ProbeProtocol.TCP:
            probe_func, effective_timeout = self.tcp_probe, timeout_ms
        else:
            probe_func, effective_timeout = self.icmp_probe, icmp_timeout_ms

        async with semaphore:
            self.stats["probes_run"] += 1
            try:
                latency_ms = await asyncio.wait_for(
                    probe_func(target, effective_timeout),
                    timeout=effective_timeout / 1000.0 + PROBE_DEADLINE_GRACE_S,
                )
            except asyncio.CancelledError:
                raise
            except (OSError, asyncio.TimeoutError, ProbeFailed) as e:
                self.stats["probes_offline"] += 1
                logger.debug(f"{target.protocol.value} probe of '{target.name}' ({target.address}) failed: {e!r}")
                return ProbeResult.offline(target)
            except Exception as e:
                self.stats["probes_offline"] += 1
                self.stats["probes_errored"] += 1
                logger.warning(f"{target.protocol.value} probe of '{target.name}' raised {type(e).__name__}: {e}")
                return ProbeResult.offline(target)

        self.stats["probes_online"] += 1
        return ProbeResult.online(target, math.floor(latency_ms))

    def get_stats(self) -> Dict[str, Any]:
        """Return a copy of the cumulative probe counters."""
        return self.stats.copy()
