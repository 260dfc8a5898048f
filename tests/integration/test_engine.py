"""
Integration tests: scheduler, real TCP probing and cache together.

Host facts come from a fake collector; TCP targets point at local asyncio
servers and at a port with nothing listening.
"""

import asyncio
import socket

import pytest

from hostwatch.models import AppConfig, MonitorConfig, ProbeStatus, Target
from hostwatch.monitoring import RefreshScheduler, SnapshotCache
from hostwatch.platforms import LinuxNormalizer
from hostwatch.probing import Prober


def unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_cycle_with_real_tcp_targets(make_collector, make_probe):
    async def handle(reader, writer):
        writer.close()

    servers = [await asyncio.start_server(handle, "127.0.0.1", 0) for _ in range(3)]
    ports = [server.sockets[0].getsockname()[1] for server in servers]

    targets = [Target(f"svc{i}", "127.0.0.1", port=port, service="test") for i, port in enumerate(ports)]
    targets.insert(1, Target("closed", "127.0.0.1", port=unused_port()))
    targets.append(Target("icmp-host", "127.0.0.1"))

    config = AppConfig(
        monitor=MonitorConfig(probe_concurrency=2, tcp_timeout_ms=500, icmp_timeout_ms=500, collector_workers=1),
        targets=targets,
    )
    normalizer = LinuxNormalizer("x86_64")
    scheduler = RefreshScheduler(
        config=config,
        collector=make_collector(),
        prober=Prober(normalizer, icmp_probe=make_probe()),
        cache=SnapshotCache(),
        normalizer=normalizer,
    )

    try:
        await scheduler.prepare()
        state = await scheduler.cache.force_refresh()
    finally:
        await scheduler.stop(grace_seconds=0)
        for server in servers:
            server.close()
            await server.wait_closed()

    assert state.available is True
    statuses = {r.target_name: r.status for r in state.probe_results}
    assert statuses == {
        "svc0": ProbeStatus.ONLINE,
        "closed": ProbeStatus.OFFLINE,
        "svc1": ProbeStatus.ONLINE,
        "svc2": ProbeStatus.ONLINE,
        "icmp-host": ProbeStatus.ONLINE,
    }
    assert [r.target_name for r in state.probe_results] == [t.name for t in targets]
    assert all(r.latency_ms >= 0 for r in state.probe_results if r.is_online)
    assert state.to_dict()["targets"][1]["latency_ms"] == -1
