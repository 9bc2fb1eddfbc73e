"""Unit tests for the hie-interop CLI."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from hie_interop import __version__
from hie_interop.cli.main import cli
from hie_interop.cli.network_commands import format_uptime, service_endpoints
from hie_interop.config import load_config
from hie_interop.utils.exceptions import TransportError


@pytest.fixture
def runner():
    """Create Click CLI runner."""
    return CliRunner()


@pytest.fixture
def cli_args(tmp_path):
    """Global options keeping logs inside tmp_path."""
    return ["--log-file", str(tmp_path / "cli.log")]


class TestCliGroup:
    """Tests for the top-level group."""

    def test_version_option(self, runner):
        """Test version option."""
        # Arrange & Act
        result = runner.invoke(cli, ["--version"])

        # Assert
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_version_command(self, runner, cli_args):
        """Test version command."""
        # Arrange & Act
        result = runner.invoke(cli, cli_args + ["version"])

        # Assert
        assert result.exit_code == 0
        assert f"hie-interop version {__version__}" in result.output

    def test_help_lists_command_groups(self, runner):
        """Test help lists command groups."""
        # Arrange & Act
        result = runner.invoke(cli, ["--help"])

        # Assert
        assert result.exit_code == 0
        for name in ("broker", "node", "portal", "network", "config"):
            assert name in result.output

    def test_invalid_config_exits_with_error(self, runner, tmp_path):
        """Test invalid config exits with error."""
        # Arrange
        config_file = tmp_path / "config.json"
        config_file.write_text("{broken")

        # Act
        result = runner.invoke(cli, ["--config", str(config_file), "version"])

        # Assert
        assert result.exit_code == 1
        assert "Error loading configuration" in result.output


class TestConfigValidate:
    """Tests for `config validate`."""

    def test_valid_config(self, runner, cli_args, tmp_path):
        """Test valid config."""
        # Arrange
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"broker": {"port": 4100}}))

        # Act
        result = runner.invoke(cli, cli_args + ["config", "validate", str(config_file)])

        # Assert
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "0.0.0.0:4100" in result.output
        assert "Hospital-B" in result.output

    def test_invalid_gender_table(self, runner, cli_args, tmp_path):
        """Test invalid gender table."""
        # Arrange
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({
            "nodes": [{
                "name": "Hospital-X",
                "port": 3009,
                "db_path": "x.json",
                "local_gender": {"male": "1", "female": "1", "other": "9", "unknown": "8"},
            }]
        }))

        # Act
        result = runner.invoke(cli, cli_args + ["config", "validate", str(config_file)])

        # Assert
        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output


class TestServeCommands:
    """Tests for the start commands (servers are never actually started)."""

    def test_broker_start(self, runner, cli_args):
        """Test broker start."""
        # Arrange
        with patch("hie_interop.broker.app.run_server") as mock_run:
            # Act
            result = runner.invoke(cli, cli_args + ["broker", "start", "--port", "4100"])

        # Assert
        assert result.exit_code == 0, result.output
        assert "HIE Broker" in result.output
        assert "Hospital-A, Hospital-B, Hospital-C" in result.output
        assert mock_run.call_args.kwargs["port"] == 4100

    def test_node_start_case_insensitive_name(self, runner, cli_args):
        """Test node start case insensitive name."""
        # Arrange
        with patch("hie_interop.node.app.run_server") as mock_run:
            # Act
            result = runner.invoke(cli, cli_args + ["node", "start", "hospital-b"])

        # Assert
        assert result.exit_code == 0, result.output
        assert "Hospital Node: Hospital-B" in result.output
        assert "female=0" in result.output
        node_config = mock_run.call_args.args[0]
        assert node_config.name == "Hospital-B"
        assert node_config.port == 3002

    def test_node_start_unknown_name(self, runner, cli_args):
        """Test node start unknown name."""
        # Arrange
        with patch("hie_interop.node.app.run_server") as mock_run:
            # Act
            result = runner.invoke(cli, cli_args + ["node", "start", "Hospital-Z"])

        # Assert
        assert result.exit_code != 0
        assert "Unknown node: Hospital-Z" in result.output
        mock_run.assert_not_called()

    def test_portal_start(self, runner, cli_args):
        """Test portal start."""
        # Arrange
        with patch("hie_interop.portal.app.run_server") as mock_run:
            # Act
            result = runner.invoke(cli, cli_args + ["portal", "start"])

        # Assert
        assert result.exit_code == 0, result.output
        assert "/api/health" in result.output
        mock_run.assert_called_once()

    def test_invalid_port_rejected(self, runner, cli_args):
        """Test invalid port rejected."""
        # Arrange
        with patch("hie_interop.broker.app.run_server") as mock_run:
            # Act
            result = runner.invoke(cli, cli_args + ["broker", "start", "--port", "70000"])

        # Assert
        assert result.exit_code != 0
        assert "Invalid port 70000" in result.output
        mock_run.assert_not_called()


class TestNetworkStatus:
    """Tests for `network status`."""

    def test_service_endpoints(self, tmp_path):
        """Test service endpoints."""
        # Arrange
        config = load_config(tmp_path / "absent.json")

        # Act
        endpoints = dict(service_endpoints(config))

        # Assert
        assert endpoints["hie"] == "http://127.0.0.1:4000/health"
        assert endpoints["Hospital-B"] == "http://127.0.0.1:3002/health"
        assert endpoints["portal"] == "http://127.0.0.1:5000/api/health"

    def test_all_services_up(self, runner, cli_args):
        """Test all services up."""
        # Arrange
        health = {"status": "healthy", "uptime_seconds": 75, "request_count": 3, "patients": 2}
        with patch(
            "hie_interop.transport.http_client.ConnectionPool.get_json", return_value=health
        ):
            # Act
            result = runner.invoke(cli, cli_args + ["network", "status"])

        # Assert
        assert result.exit_code == 0
        assert "up 1m 15s" in result.output
        assert "unreachable" not in result.output

    def test_unreachable_service_exits_nonzero(self, runner, cli_args):
        """Test unreachable service exits nonzero."""
        # Arrange
        def get_json(url):
            if ":3003/" in url:
                raise TransportError("connection refused")
            return {"uptime_seconds": 1, "request_count": 0, "patients": 0}

        with patch(
            "hie_interop.transport.http_client.ConnectionPool.get_json", side_effect=get_json
        ):
            # Act
            result = runner.invoke(cli, cli_args + ["network", "status", "--json"])

        # Assert
        assert result.exit_code == 1
        statuses = {s["service"]: s["running"] for s in json.loads(result.stdout)}
        assert statuses["Hospital-C"] is False
        assert statuses["hie"] is True


class TestFormatUptime:
    def test_format_uptime(self):
        """Test format uptime."""
        assert format_uptime(0) == "0s"
        assert format_uptime(3661) == "1h 1m 1s"
        assert format_uptime(120) == "2m"
