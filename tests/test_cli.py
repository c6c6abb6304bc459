"""
Tests for the Pisi Store CLI.

Every command runs against the mock backend or a fake transport; nothing
is installed.
"""

import pytest
from unittest.mock import patch

from common.exceptions import CommandError
from pkgstore import cli
from pkgstore.app import build_app

from conftest import FakeTransport, package_records


@pytest.fixture(autouse=True)
def isolated(clean_env, monkeypatch, temp_config_dir):
    """Keep preferences in tmp and leave the root logger alone."""
    monkeypatch.setenv("PISI_STORE_CONFIG_DIR", str(temp_config_dir))
    with patch("pkgstore.cli.setup_logging"):
        yield


def run_cli(*argv):
    return cli.main(list(argv))


@pytest.mark.unit
class TestParser:
    """Argument parsing."""

    def test_no_command_prints_help(self, capsys):
        assert run_cli() == 1
        assert "usage:" in capsys.readouterr().out

    def test_invalid_status_rejected(self):
        with pytest.raises(SystemExit):
            run_cli("list", "-s", "broken")

    def test_list_options(self):
        args = cli.build_parser().parse_args(
            ["--mock", "list", "fire", "-c", "desktop.web", "--category", "installed"]
        )
        assert args.mock is True
        assert args.query == "fire"
        assert args.component == "desktop.web"
        assert args.category == "installed"
        assert args.func is cli.cmd_list


@pytest.mark.integration
class TestMockCommands:
    """Commands against the built-in mock backend."""

    def test_stats(self, capsys):
        assert run_cli("--mock", "stats") == 0
        out = capsys.readouterr().out
        assert "Total:       5" in out
        assert "Updates:     1" in out
        assert "(mock backend)" in out

    def test_list_query(self, capsys):
        assert run_cli("--mock", "list", "fire") == 0
        assert "firefox" in capsys.readouterr().out

    def test_list_no_results(self, capsys):
        assert run_cli("--mock", "list", "--category", "installed") == 0
        assert "No packages found" in capsys.readouterr().out

    def test_info(self, capsys):
        assert run_cli("--mock", "info", "firefox") == 0
        out = capsys.readouterr().out
        assert "Name:        firefox" in out
        assert "Version:     0.1" in out
        assert "Installed:   No" in out
        assert "Size:        97.0 MB" in out

    def test_info_unknown_package(self, capsys):
        assert run_cli("--mock", "info", "nothing") == 1
        assert "Package not found: nothing" in capsys.readouterr().err

    def test_search_on_mock_finds_nothing(self, capsys):
        assert run_cli("--mock", "search", "fire") == 0
        assert "No packages found for: fire" in capsys.readouterr().out

    def test_components(self, capsys):
        assert run_cli("--mock", "components") == 0
        assert "desktop.web: 1 package(s)" in capsys.readouterr().out

    def test_install(self, capsys):
        assert run_cli("--mock", "install", "firefox") == 0
        assert "install_package command executed successfully" in capsys.readouterr().out

    def test_refresh_repo(self, capsys):
        assert run_cli("--mock", "refresh-repo") == 0
        assert "Repository index updated." in capsys.readouterr().out


@pytest.mark.integration
class TestBackendErrors:
    """Commands against a failing backend."""

    def test_failed_remove_exits_nonzero(self, store_config, capsys):
        transport = FakeTransport(errors={
            "remove_package": CommandError("remove_package", "pisi rm failed: locked"),
        })
        app = build_app(store_config, locate=lambda: transport)

        with patch("pkgstore.cli.get_app", return_value=app):
            assert run_cli("remove", "vlc") == 1

        assert "Error: pisi rm failed: locked" in capsys.readouterr().err

    def test_failed_catalog_load(self, store_config, capsys):
        transport = FakeTransport(errors={
            "get_packages": CommandError("get_packages", "index missing"),
        })
        app = build_app(store_config, locate=lambda: transport)

        with patch("pkgstore.cli.get_app", return_value=app):
            assert run_cli("list") == 1

        assert "Failed to load package catalog" in capsys.readouterr().err

    def test_failed_stats(self, store_config, capsys):
        transport = FakeTransport(errors={
            "get_package_stats": CommandError("get_package_stats", "pisi li failed"),
        })
        app = build_app(store_config, locate=lambda: transport)

        with patch("pkgstore.cli.get_app", return_value=app):
            assert run_cli("stats") == 1

        assert "Error: pisi li failed" in capsys.readouterr().err

    def test_search_uses_backend(self, store_config, sample_packages, capsys):
        transport = FakeTransport(responses={
            "search_packages": package_records(sample_packages[:1]),
        })
        app = build_app(store_config, locate=lambda: transport)

        with patch("pkgstore.cli.get_app", return_value=app):
            assert run_cli("search", "fire") == 0

        assert transport.calls == [("search_packages", {"query": "fire"})]
        assert "firefox" in capsys.readouterr().out
