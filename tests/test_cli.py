"""Tests for the command line entry point."""

import logging
from pathlib import Path

import pytest

from mirro import cli, config
from mirro.errors import ConfigError
from mirro.selection import SelectionSet
from mirro.state import AppState
from mirro.types import ExportSettings, ExportSort, Filter, ViewSort

from conftest import make_country


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setattr(config, "get_config_dir", lambda: config_dir)
    monkeypatch.setattr(cli, "get_cache_dir", lambda: tmp_path / "cache")
    return config_dir


class TestParser:
    def test_defaults_are_none(self):
        args = cli.build_parser().parse_args([])
        assert args.outfile is None
        assert args.filters is None
        assert args.debug is None

    def test_repeatable_flags(self):
        args = cli.build_parser().parse_args(
            ["-f", "https", "-f", "in-sync", "-c", "DE", "--country", "FR"]
        )
        assert args.filters == ["https", "in-sync"]
        assert args.countries == ["DE", "FR"]

    def test_rejects_unknown_choice(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--sort", "age"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "mirro" in capsys.readouterr().out


class TestConfigurationFromArgs:
    def test_flags_override_file(self, config_env):
        (config_env / "mirro.yaml").write_text("export: 10\nview: mirror-count\n")
        args = cli.build_parser().parse_args(["-e", "3", "-s", "delay", "-o", "/tmp/ml"])
        configuration = cli.configuration_from_args(args)
        assert configuration.export == 3
        assert configuration.sort is ExportSort.DELAY
        assert configuration.view is ViewSort.MIRROR_COUNT
        assert configuration.outfile == Path("/tmp/ml")

    def test_filters_replace_file_filters(self, config_env):
        args = cli.build_parser().parse_args(["-f", "rsync"])
        assert cli.configuration_from_args(args).filters == (Filter.RSYNC,)

    def test_explicit_config(self, tmp_path):
        path = tmp_path / "alt.yaml"
        path.write_text("cache-ttl: 2\n")
        args = cli.build_parser().parse_args(["--config", str(path)])
        assert cli.configuration_from_args(args).ttl == 2


def test_configure_logging(tmp_path):
    log_path = cli.configure_logging(debug=True, log_dir=tmp_path)
    logger = logging.getLogger("mirro")
    try:
        assert log_path == tmp_path / "mirro.log"
        assert logger.level == logging.DEBUG
        logging.getLogger("mirro.state").debug("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_path.read_text()
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers[:] = []


class FakeDashboard:
    result = AppState()
    error = None

    def __init__(self, configuration, console=None):
        self.configuration = configuration

    def run(self):
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_dashboard(monkeypatch):
    from mirro import runtime

    monkeypatch.setattr(runtime, "Dashboard", FakeDashboard)
    monkeypatch.setattr(cli, "configure_logging", lambda debug: None)
    yield FakeDashboard
    FakeDashboard.result = AppState()
    FakeDashboard.error = None


class TestMain:
    def test_nothing_selected(self, config_env, fake_dashboard, tmp_path):
        cli.main(["-o", str(tmp_path / "mirrorlist")])
        assert not (tmp_path / "mirrorlist").exists()

    def test_writes_selection(self, config_env, fake_dashboard, tmp_path):
        outfile = tmp_path / "mirrorlist"
        selection = SelectionSet().toggle(make_country("DE", "Germany", 3))
        fake_dashboard.result = AppState(
            selection=selection, export=ExportSettings(outfile=outfile, limit=2)
        )
        cli.main([])
        assert outfile.read_text().count("Server = ") == 2

    def test_keyboard_interrupt_exits_130(self, config_env, fake_dashboard):
        fake_dashboard.error = KeyboardInterrupt()
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 130

    def test_config_error_exits_1(self, config_env, fake_dashboard):
        fake_dashboard.error = ConfigError("bad")
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1


def test_dashboard_watcher_keeps_flags(config_env, tmp_path):
    from mirro.runtime import Dashboard

    args = cli.build_parser().parse_args(["-o", str(tmp_path / "out"), "-e", "7"])
    dashboard = Dashboard(cli.configuration_from_args(args), cache_dir=tmp_path)
    assert dashboard.watcher.overrides["export"] == 7
    assert dashboard.watcher.overrides["outfile"] == str(tmp_path / "out")
