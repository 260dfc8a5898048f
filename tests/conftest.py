"""
Pytest configuration and shared fixtures for the hostwatch test suite.

This module provides common fixtures, fakes for the collector and probes,
and configuration helpers for all test modules.
"""

import asyncio
import shutil
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hostwatch.models import (  # noqa: E402
    AppConfig,
    CpuInfo,
    DiskVolume,
    DynamicFacts,
    MemoryUsage,
    MonitorConfig,
    StaticFacts,
    Target,
)


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_monitor_data():
    """Sample [monitor] table for testing."""
    return {
        "refresh_interval_seconds": 10.0,
        "probe_concurrency": 2,
        "tcp_timeout_ms": 1000,
        "icmp_timeout_ms": 800,
        "collect_timeout_seconds": 5.0,
        "static_collect_timeout_seconds": 30.0,
        "shutdown_grace_seconds": 5.0,
        "collector_workers": 2,
    }


@pytest.fixture
def sample_targets_data():
    """Sample [[targets]] entries for testing."""
    return [
        {"name": "gateway", "address": "192.168.1.1"},
        {"name": "dns", "address": "1.1.1.1", "port": 53, "service": "dns"},
        {"name": "web", "address": "example.org", "port": 443, "service": "https"},
    ]


@pytest.fixture
def config_files(temp_dir, sample_monitor_data, sample_targets_data):
    """Create a temporary config.toml for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    with open(config_file, "w") as f:
        toml.dump({"monitor": sample_monitor_data, "targets": sample_targets_data}, f)

    return {"config": config_file, "dir": temp_dir}


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def static_facts():
    """Static host facts of a Linux x86_64 machine."""
    return StaticFacts(
        hostname="testhost",
        cpu=CpuInfo(vendor="AMD", brand="AMD Ryzen 7 5800X 8-Core Processor", cores=8),
        gpu="NVIDIA GeForce RTX 3070",
        system="Linux",
        release="6.8.0",
        arch="x86_64",
        distro="Ubuntu",
    )


@pytest.fixture
def dynamic_facts():
    """Dynamic facts with two volumes and a native load average."""
    gib = 1024 ** 3
    return DynamicFacts(
        memory=MemoryUsage(total_bytes=16 * gib, used_bytes=6 * gib, available_bytes=10 * gib, percent=37.5),
        volumes=(
            DiskVolume("/", "ext4", 100 * gib, 40 * gib, 60 * gib, device="/dev/sda1"),
            DiskVolume("/home", "ext4", 200 * gib, 50 * gib, 150 * gib, device="/dev/sda2"),
        ),
        load_average=(0.5, 0.25, 0.125),
        cpu_percent=12.0,
        uptime_seconds=90061,
    )


@pytest.fixture
def app_config():
    """Application config with fast timings and mixed ICMP/TCP targets."""
    return AppConfig(
        monitor=MonitorConfig(
            refresh_interval_seconds=1.0,
            probe_concurrency=2,
            tcp_timeout_ms=200,
            icmp_timeout_ms=200,
            collect_timeout_seconds=1.0,
            static_collect_timeout_seconds=1.0,
            shutdown_grace_seconds=1.0,
            collector_workers=1,
        ),
        targets=[
            Target(name="gateway", address="192.168.1.1"),
            Target(name="web", address="example.org", port=443, service="https"),
        ],
    )


# ============================================================================
# Fakes
# ============================================================================


class FakeCollector:
    """
    Collector stand-in returning fixed facts, optionally failing.

    Like the real collector it remembers the last facts it produced in
    ``last_static`` and ``last_dynamic``.
    """

    def __init__(self, static: StaticFacts, dynamic: DynamicFacts, fail_dynamic: bool = False):
        self.static = static
        self.dynamic = dynamic
        self.fail_dynamic = fail_dynamic
        self.static_calls = 0
        self.dynamic_calls = 0
        self.last_static: Optional[StaticFacts] = None
        self.last_dynamic: Optional[DynamicFacts] = None

    def collect_static(self) -> StaticFacts:
        self.static_calls += 1
        self.last_static = self.static
        return self.static

    def collect_dynamic(self) -> DynamicFacts:
        self.dynamic_calls += 1
        if self.fail_dynamic:
            raise RuntimeError("psutil unavailable")
        self.last_dynamic = self.dynamic
        return self.dynamic


class FakeProbe:
    """
    Async probe returning scripted latencies per target name.

    A latency of None makes the probe raise ConnectionRefusedError; an
    exception instance is raised as-is. Tracks peak concurrency.
    """

    def __init__(self, latencies: Optional[Dict[str, object]] = None, delay: float = 0.0):
        self.latencies = latencies or {}
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, target: Target, timeout_ms: int) -> float:
        self.calls.append(target.name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            value = self.latencies.get(target.name, 5.0)
            if value is None:
                raise ConnectionRefusedError(f"{target.address} refused")
            if isinstance(value, BaseException):
                raise value
            return value
        finally:
            self.in_flight -= 1


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def fake_collector(static_facts, dynamic_facts):
    """Collector fake returning the sample facts."""
    return FakeCollector(static_facts, dynamic_facts)


@pytest.fixture
def fake_probe():
    """Probe fake returning 5 ms for every target."""
    return FakeProbe()


@pytest.fixture
def make_probe():
    """Factory for scripted probe fakes."""
    return FakeProbe


@pytest.fixture
def make_collector(static_facts, dynamic_facts):
    """Factory for collector fakes; keyword overrides replace the sample facts."""

    def _make(**kwargs) -> FakeCollector:
        kwargs.setdefault("static", static_facts)
        kwargs.setdefault("dynamic", dynamic_facts)
        return FakeCollector(**kwargs)

    return _make


@pytest.fixture
def step_clock():
    """Deterministic clock."""
    return StepClock()


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield

    from hostwatch.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
