"""
Single-target reachability probes.

A probe is an async callable ``(target, timeout_ms) -> latency_ms``. It returns
the observed round-trip (ICMP) or connect (TCP) time in milliseconds and
raises on any failure; the :class:`~hostwatch.probing.prober.Prober` maps
failures to Offline results.
"""

import asyncio
import logging
import re
import time
from typing import Awaitable, Callable, Optional

from ..models.config import Target
from ..platforms import PlatformNormalizer, get_normalizer

logger = logging.getLogger(__name__)

ProbeFunc = Callable[[Target, int], Awaitable[float]]

# Extra time allowed for spawning ping and reading its output.
ICMP_PROCESS_GRACE_S = 0.5

# Matches "time=12.3 ms" (Linux/macOS) and "time<1ms" / "time=4ms" (Windows).
_PING_TIME_RE = re.compile(r"time\s*([=<])\s*([\d.]+)\s*ms", re.IGNORECASE)


class ProbeFailed(Exception):
    """Raised when a target did not answer a probe."""


def parse_ping_latency(output: str) -> Optional[float]:
    """
    Extract the reply time in milliseconds from ping output.

    Returns:
        Latency in ms, 0.0 for sub-millisecond "time<1ms" replies, or None
    """
    match = _PING_TIME_RE.search(output)
    if match is None:
        return None
    if match.group(1) == "<":
        return 0.0
    return float(match.group(2))


async def tcp_connect_probe(target: Target, timeout_ms: int) -> float:
    """
    Open and close a TCP connection to ``(address, port)``.

    Returns:
        Connect time in milliseconds

    Raises:
        asyncio.TimeoutError: If the connection did not establish in time
        OSError: If the connection was refused or the host is unreachable
    """
    if target.port is None:
        raise ValueError(f"Target '{target.name}' has no port for a TCP probe")

    start = time.perf_counter()
    _, writer = await asyncio.wait_for(
        asyncio.open_connection(target.address, target.port),
        timeout=timeout_ms / 1000.0,
    )
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    writer.close()
    try:
        await asyncio.wait_for(writer.wait_closed(), timeout=timeout_ms / 1000.0)
    except (OSError, asyncio.TimeoutError) as e:
        logger.debug(f"Ignoring close error for {target.address}:{target.port}: {e}")
    return elapsed_ms


class IcmpEchoProbe:
    """
    ICMP echo probe backed by the system ``ping`` binary.

    Raw ICMP sockets need elevated privileges; the setuid/capability-enabled
    ``ping`` tool does not. The command line comes from the platform
    normalizer.

    Args:
        normalizer: Supplies the platform's ping argument vector
    """

    def __init__(self, normalizer: Optional[PlatformNormalizer] = None):
        self.normalizer = normalizer or get_normalizer()
        self._missing_binary_logged = False

    async def __call__(self, target: Target, timeout_ms: int) -> float:
        args = self.normalizer.ping_command(target.address, timeout_ms)
        start = time.perf_counter()

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            if not self._missing_binary_logged:
                logger.warning(f"'{args[0]}' not found; ICMP targets will report Offline")
                self._missing_binary_logged = True
            raise

        try:
            stdout, _ = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout_ms / 1000.0 + ICMP_PROCESS_GRACE_S,
            )
        except (asyncio.TimeoutError, asyncio.CancelledError):
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000.0

        if process.returncode != 0:
            raise ProbeFailed(f"ping {target.address} exited with {process.returncode}")

        output = stdout.decode("utf-8", errors="replace")
        latency = parse_ping_latency(output)
        if latency is not None:
            return latency
        # Windows exits 0 for "Destination host unreachable"; only a real echo reply carries a TTL.
        if "ttl" not in output.lower():
            raise ProbeFailed(f"ping {target.address} got no echo reply")
        return elapsed_ms
