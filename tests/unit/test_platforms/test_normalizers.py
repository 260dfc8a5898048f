"""
Unit tests for platform normalization.

Covers uptime formatting, disk deduplication per platform, load-average
substitution on Windows, macOS naming and the arm64 latency correction.
"""

import pytest

from hostwatch.models import (
    DiskVolume,
    DynamicFacts,
    ProbeResult,
    StaticFacts,
    Target,
)
from hostwatch.platforms import (
    DarwinNormalizer,
    LinuxNormalizer,
    PlatformNormalizer,
    WindowsNormalizer,
    format_uptime,
    get_normalizer,
    macos_codename,
)

GIB = 1024 ** 3


def volume(mount, fstype="apfs", total=100, used=40, device=""):
    return DiskVolume(mount, fstype, total * GIB, used * GIB, (total - used) * GIB, device=device)


@pytest.mark.unit
class TestFormatUptime:
    """Test cases for format_uptime."""

    def test_all_units(self):
        assert format_uptime(90061) == "1 day, 1 hour, 1 minute, 1 second"

    def test_plural_and_skipped_units(self):
        assert format_uptime(7200) == "2 hours"
        assert format_uptime(2 * 86400 + 5) == "2 days, 5 seconds"

    def test_months_and_years(self):
        assert format_uptime(365 * 86400 + 30 * 86400) == "1 year, 1 month"

    def test_zero(self):
        assert format_uptime(0) == "0 seconds"
        assert format_uptime(-3) == "0 seconds"


@pytest.mark.unit
class TestGetNormalizer:
    """Test cases for normalizer selection."""

    @pytest.mark.parametrize(
        "system,expected",
        [
            ("Darwin", DarwinNormalizer),
            ("Windows", WindowsNormalizer),
            ("Linux", LinuxNormalizer),
            ("FreeBSD", PlatformNormalizer),
        ],
    )
    def test_selects_family(self, system, expected):
        normalizer = get_normalizer(system, "x86_64")

        assert type(normalizer) is expected
        assert normalizer.arch == "x86_64"


@pytest.mark.unit
class TestDarwinNormalizer:
    """Test cases for macOS normalization."""

    def test_dedupe_keeps_data_volume_first(self):
        """Test APFS helper volumes are dropped and Data sorts first."""
        normalizer = DarwinNormalizer("arm64")
        raw = [
            volume("/", total=500, used=15),
            volume("/System/Volumes/VM", total=500, used=2),
            volume("/System/Volumes/Preboot", total=500, used=1),
            volume("/Volumes/Backup", fstype="hfs", total=1000, used=300),
            volume("/System/Volumes/Data", total=500, used=200),
            volume("/private/var/vm", total=500, used=2),
            volume("/dev", fstype="devfs", total=1, used=1),
            volume("/System/Volumes/Data", total=500, used=200),
        ]

        deduped = normalizer.dedupe_volumes(raw)

        assert [v.mount for v in deduped] == ["/System/Volumes/Data", "/Volumes/Backup"]

    def test_dedupe_is_idempotent(self):
        normalizer = DarwinNormalizer("arm64")
        raw = [
            volume("/Volumes/Zeta"),
            volume("/System/Volumes/Data"),
            volume("/Volumes/Alpha"),
            volume("/"),
        ]

        once = normalizer.dedupe_volumes(raw)

        assert normalizer.dedupe_volumes(once) == once
        assert [v.mount for v in once] == ["/System/Volumes/Data", "/Volumes/Alpha", "/Volumes/Zeta"]

    def test_aggregate_disk_sums_deduped(self):
        normalizer = DarwinNormalizer("x86_64")
        disk = normalizer.aggregate_disk(
            [volume("/", total=500, used=15), volume("/System/Volumes/Data", total=500, used=200)]
        )

        assert disk.total_bytes == 500 * GIB
        assert disk.used_bytes == 200 * GIB
        assert len(disk.volumes) == 1

    @pytest.mark.parametrize(
        "version,codename",
        [
            ("10.15.7", "Catalina"),
            ("10.9", "Mavericks"),
            ("11.7.10", "Big Sur"),
            ("14.5", "Sonoma"),
            ("15.0", "Sequoia"),
            ("99.1", ""),
        ],
    )
    def test_codenames(self, version, codename):
        assert macos_codename(version) == codename

    def test_os_name(self):
        normalizer = DarwinNormalizer("arm64")

        assert normalizer.os_name(StaticFacts(system="Darwin", release="14.5")) == "macOS Sonoma 14.5"
        assert normalizer.os_name(StaticFacts(system="Darwin", release="99.0")) == "macOS 99.0"

    def test_os_name_without_release(self):
        assert DarwinNormalizer("arm64").os_name(StaticFacts.unknown()) == "macOS"

    @pytest.mark.parametrize("arch,raw,expected", [("arm64", 5, 4), ("arm64", 0, 0), ("aarch64", 1, 0), ("x86_64", 5, 5)])
    def test_adjust_latency(self, arch, raw, expected):
        assert DarwinNormalizer(arch).adjust_latency(raw) == expected

    def test_normalize_probe_results_only_touches_online(self):
        normalizer = DarwinNormalizer("arm64")
        web = Target("web", "example.org", port=443)
        nas = Target("nas", "10.0.0.5")

        results = normalizer.normalize_probe_results(
            [ProbeResult.online(web, 5), ProbeResult.offline(nas), ProbeResult.online(nas, 0)]
        )

        assert [r.latency_ms for r in results] == [4, -1, 0]

    def test_ping_command_uses_milliseconds(self):
        assert DarwinNormalizer("arm64").ping_command("10.0.0.1", 800) == [
            "ping", "-n", "-c", "1", "-W", "800", "10.0.0.1",
        ]


@pytest.mark.unit
class TestWindowsNormalizer:
    """Test cases for Windows normalization."""

    def test_load_average_repeats_cpu_percent(self):
        facts = DynamicFacts(load_average=None, cpu_percent=37.456)

        assert WindowsNormalizer("AMD64").load_average(facts) == {"1m": "37.46", "5m": "37.46", "15m": "37.46"}

    def test_os_name(self):
        assert WindowsNormalizer("AMD64").os_name(StaticFacts(system="Windows", release="11")) == "Windows 11"

    def test_ping_command(self):
        assert WindowsNormalizer("AMD64").ping_command("10.0.0.1", 1000) == ["ping", "-n", "1", "-w", "1000", "10.0.0.1"]


@pytest.mark.unit
class TestLinuxNormalizer:
    """Test cases for Linux normalization."""

    def test_dedupe_by_device_and_fstype(self):
        normalizer = LinuxNormalizer("x86_64")
        raw = [
            volume("/home", fstype="ext4", total=200, device="/dev/sda2"),
            volume("/", fstype="ext4", total=100, device="/dev/sda1"),
            volume("/var/lib/docker", fstype="ext4", total=100, device="/dev/sda1"),
            volume("/snap/core/1", fstype="squashfs", total=1, device="/dev/loop0"),
            volume("/run", fstype="tmpfs", total=2, device="tmpfs"),
        ]

        deduped = normalizer.dedupe_volumes(raw)

        assert [v.mount for v in deduped] == ["/", "/home"]

    def test_native_load_average(self):
        facts = DynamicFacts(load_average=(1.0, 0.5, 0.25), cpu_percent=80.0)

        assert LinuxNormalizer().load_average(facts) == {"1m": "1.00", "5m": "0.50", "15m": "0.25"}

    def test_ping_command_rounds_up_to_seconds(self):
        assert LinuxNormalizer().ping_command("10.0.0.1", 800) == ["ping", "-n", "-c", "1", "-W", "1", "10.0.0.1"]
        assert LinuxNormalizer().ping_command("10.0.0.1", 2500) == ["ping", "-n", "-c", "1", "-W", "3", "10.0.0.1"]


@pytest.mark.unit
class TestBuildSnapshot:
    """Test cases for building the normalized snapshot."""

    def test_build_snapshot(self, static_facts, dynamic_facts):
        snapshot = LinuxNormalizer("x86_64").build_snapshot(static_facts, dynamic_facts)

        assert snapshot.hostname == "testhost"
        assert snapshot.os_name == "Ubuntu"
        assert snapshot.uptime_text == "1 day, 1 hour, 1 minute, 1 second"
        assert dict(snapshot.load_average) == {"1m": "0.50", "5m": "0.25", "15m": "0.12"}
        assert snapshot.disk.total_bytes == 300 * GIB
        assert snapshot.memory is dynamic_facts.memory

    def test_build_snapshot_from_unknown_facts(self):
        snapshot = PlatformNormalizer().build_snapshot(StaticFacts.unknown(), DynamicFacts.unknown())

        assert snapshot.hostname == "Unknown"
        assert snapshot.os_name == "Unknown"
        assert snapshot.uptime_text == "0 seconds"
        assert dict(snapshot.load_average) == {"1m": "0.00", "5m": "0.00", "15m": "0.00"}

    def test_snapshot_to_dict(self, static_facts, dynamic_facts):
        data = LinuxNormalizer().build_snapshot(static_facts, dynamic_facts).to_dict()

        assert data["cpu"]["vendor"] == "AMD"
        assert data["disk"]["volumes"][0]["mount"] == "/"
        assert data["disk"]["volumes"][0]["use_percent"] == 40.0
        assert data["load_average"] == {"1m": "0.50", "5m": "0.25", "15m": "0.12"}

    def test_snapshot_load_average_is_immutable(self, static_facts, dynamic_facts):
        snapshot = LinuxNormalizer().build_snapshot(static_facts, dynamic_facts)

        assert isinstance(snapshot.load_average, tuple)
        with pytest.raises(TypeError):
            snapshot.load_average[0] = ("1m", "9.99")
