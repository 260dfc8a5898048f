"""
Unit tests for the command-line interface.
"""

import json
from unittest.mock import patch

import pytest

from hostwatch.cli import main as cli_main
from hostwatch.cli.main import build_engine, build_parser, main_cli
from hostwatch.models import CacheState
from hostwatch.monitoring import RefreshScheduler, SnapshotCache


@pytest.mark.unit
class TestParser:
    """Test cases for argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.once is False
        assert args.log_level == "INFO"

    def test_log_level_upper_cased(self):
        assert build_parser().parse_args(["--log-level", "debug"]).log_level == "DEBUG"


@pytest.mark.unit
class TestMainCli:
    """Test cases for main_cli."""

    def test_invalid_log_level_exits(self, config_files):
        with pytest.raises(SystemExit) as exc_info:
            main_cli(["--config", str(config_files["config"]), "--log-level", "chatty"])

        assert exc_info.value.code == 2

    def test_missing_config_exits(self, temp_dir):
        with pytest.raises(SystemExit) as exc_info:
            main_cli(["--config", str(temp_dir / "missing.toml"), "--once"])

        assert exc_info.value.code == 1

    def test_once_prints_state(self, config_files, capsys, make_collector, make_probe):
        """Test --once runs one cycle with the configured targets and prints JSON."""
        probe = make_probe({"web": None})
        original_build = build_engine

        def fake_build(app_config):
            scheduler, cache = original_build(app_config)
            scheduler.collector = make_collector()
            scheduler.prober.tcp_probe = probe
            scheduler.prober.icmp_probe = probe
            return scheduler, cache

        with patch.object(cli_main, "build_engine", side_effect=fake_build):
            main_cli(["--config", str(config_files["config"]), "--once"])

        data = json.loads(capsys.readouterr().out)
        assert data["available"] is True
        assert data["cycle"] == 1
        assert data["server"]["hostname"] == "testhost"
        assert [t["name"] for t in data["targets"]] == ["gateway", "dns", "web"]
        assert data["targets"][2]["status"] == "Offline"
        assert data["targets"][2]["latency_ms"] == -1

    def test_once_unavailable_exits_nonzero(self, config_files, capsys):
        async def fake_run_once(app_config):
            return CacheState.unavailable()

        with patch.object(cli_main, "run_once", side_effect=fake_run_once):
            with pytest.raises(SystemExit) as exc_info:
                main_cli(["--config", str(config_files["config"]), "--once"])

        assert exc_info.value.code == 1
        assert json.loads(capsys.readouterr().out)["available"] is False


@pytest.mark.unit
class TestBuildEngine:
    """Test cases for engine wiring."""

    def test_shared_normalizer(self, app_config):
        scheduler, cache = build_engine(app_config)

        assert isinstance(scheduler, RefreshScheduler)
        assert isinstance(cache, SnapshotCache)
        assert scheduler.cache is cache
        assert scheduler.normalizer is scheduler.prober.normalizer
        assert scheduler.prober.icmp_probe.normalizer is scheduler.normalizer
