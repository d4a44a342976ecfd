"""Tests for the command-line interface."""

from ipaddress import IPv4Address
from unittest.mock import patch

import pytest

from conftest import FakeBackend
from idlesync import cli
from idlesync.config import Role
from idlesync.errors import StartupFailure


def parse(*argv):
    return cli.config_from_args(cli.build_parser().parse_args(list(argv)))


class TestArgs:
    def test_defaults_run_as_hub(self):
        cfg = parse()
        assert cfg.role is Role.HUB
        assert cfg.idle_timeout == 180
        assert cfg.foreground is False
        assert cfg.verbose is False
        assert cfg.api_enabled is True

    def test_satellite_flags(self):
        cfg = parse("-f", "-v", "-t", "60", "-s", "10.0.0.5", "--no-api")
        assert cfg.role is Role.SATELLITE
        assert cfg.hub_address == IPv4Address("10.0.0.5")
        assert cfg.idle_timeout == 60
        assert cfg.foreground is True
        assert cfg.verbose is True
        assert cfg.api_enabled is False

    def test_hostname_is_resolved(self):
        with patch("idlesync.cli.socket.gethostbyname", return_value="10.9.8.7"):
            cfg = parse("-s", "deskmac.local")
        assert cfg.hub_address == IPv4Address("10.9.8.7")

    def test_unresolvable_hub(self):
        with patch("idlesync.cli.socket.gethostbyname", side_effect=OSError("unknown host")):
            with pytest.raises(StartupFailure):
                parse("-s", "nowhere.invalid")


class TestMain:
    def test_get_idle_prints_and_exits(self, capsys):
        with patch("idlesync.cli.create_backend", return_value=FakeBackend(idle=321)):
            with pytest.raises(SystemExit) as exc:
                cli.main(["-g"])
        assert exc.value.code == 0
        assert capsys.readouterr().out.strip() == "321"

    def test_get_idle_unsupported_platform(self, capsys):
        with patch("idlesync.cli.create_backend", side_effect=StartupFailure("no backend")):
            with pytest.raises(SystemExit) as exc:
                cli.main(["-g"])
        assert exc.value.code == 1

    def test_startup_failure_exits_nonzero(self):
        with patch("idlesync.cli.setup_logging"), \
             patch("idlesync.cli.run", side_effect=StartupFailure("port busy")):
            with pytest.raises(SystemExit) as exc:
                cli.main(["-f", "--no-api"])
        assert exc.value.code == 1

    def test_foreground_skips_daemonize(self):
        with patch("idlesync.cli.setup_logging"), \
             patch("idlesync.cli.daemonize") as daemonize, \
             patch("idlesync.cli.run") as run:
            cli.main(["-f", "-s", "10.0.0.5"])
        daemonize.assert_not_called()
        assert run.call_args.args[0].role is Role.SATELLITE

    def test_background_daemonizes(self):
        with patch("idlesync.cli.setup_logging"), \
             patch("idlesync.cli.daemonize") as daemonize, \
             patch("idlesync.cli.run"):
            cli.main([])
        daemonize.assert_called_once()

    def test_invalid_timeout_is_usage_error(self):
        with pytest.raises(SystemExit) as exc:
            cli.main(["-f", "-t", "0"])
        assert exc.value.code == 2
