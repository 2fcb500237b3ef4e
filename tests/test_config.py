"""Tests for hostwatch_agent.config — defaults, INI file and env override."""

from __future__ import annotations

import pytest

from hostwatch_agent.config import AgentConfig, build_config, parse_interval


class TestBuildConfig:
    def test_default_values(self, tmp_path):
        c = build_config({}, str(tmp_path / "missing.conf"))
        assert c.server_host == "localhost"
        assert c.server_port == 8080
        assert c.interval == 60
        assert c.ports is None
        assert c.scan_timeout == 0.2
        assert c.scan_workers == 100

    def test_endpoint_urls(self):
        c = AgentConfig(server_host="monitor", server_port=9000)
        assert c.registration_url == "http://monitor:9000/api/agent/register"
        assert c.metrics_url == "http://monitor:9000/api/metrics"

    def test_env_values(self):
        c = build_config({
            "MONITORING_SERVER_HOST": "10.0.0.5",
            "MONITORING_SERVER_PORT": "9999",
            "SEND_INTERVAL": "15",
            "PORTS": "8080,9000-9090",
        })
        assert c.registration_url == "http://10.0.0.5:9999/api/agent/register"
        assert c.interval == 15
        assert c.ports == "8080,9000-9090"

    def test_empty_ports_means_scan(self):
        assert build_config({"PORTS": ""}).ports is None

    def test_invalid_server_port_uses_default(self):
        assert build_config({"MONITORING_SERVER_PORT": "http"}).server_port == 8080
        assert build_config({"MONITORING_SERVER_PORT": "70000"}).server_port == 8080

    def test_config_file_values(self, tmp_path):
        path = tmp_path / "agent.conf"
        path.write_text(
            "[server]\nhost = monitor.example.com\nport = 8443\n"
            "[agent]\ninterval = 30\nports = 22\n"
            "[scan]\ntimeout = 0.5\nworkers = 20\n"
        )
        c = build_config({}, str(path))
        assert c.server_host == "monitor.example.com"
        assert c.server_port == 8443
        assert c.interval == 30
        assert c.ports == "22"
        assert c.scan_timeout == 0.5
        assert c.scan_workers == 20

    def test_env_overrides_config_file(self, tmp_path):
        path = tmp_path / "agent.conf"
        path.write_text("[server]\nhost = from-file\n[agent]\ninterval = 30\n")
        c = build_config({"MONITORING_SERVER_HOST": "from-env", "SEND_INTERVAL": "5"}, str(path))
        assert c.server_host == "from-env"
        assert c.interval == 5

    def test_bad_scan_settings_use_defaults(self, tmp_path):
        path = tmp_path / "agent.conf"
        path.write_text("[scan]\ntimeout = fast\nworkers = 0\n")
        c = build_config({}, str(path))
        assert c.scan_timeout == 0.2
        assert c.scan_workers == 100

    def test_config_is_frozen(self):
        c = AgentConfig()
        with pytest.raises(AttributeError):
            c.interval = 1


class TestSendInterval:
    @pytest.mark.parametrize("value", ["0", "-10", "abc", "1.5", ""])
    def test_invalid_values_use_default(self, value):
        assert parse_interval(value) == 60

    def test_missing_value_uses_default(self):
        assert parse_interval(None) == 60

    def test_valid_value(self):
        assert parse_interval("120") == 120

    def test_env_zero_interval_uses_default(self):
        assert build_config({"SEND_INTERVAL": "0"}).interval == 60

    def test_warning_logged_for_non_integer(self, caplog):
        parse_interval("soon")
        assert "Invalid SEND_INTERVAL" in caplog.text

    def test_warning_names_config_file_source(self, tmp_path, caplog):
        path = tmp_path / "agent.conf"
        path.write_text("[agent]\ninterval = hourly\n")
        c = build_config({}, str(path))
        assert c.interval == 60
        assert "Invalid [agent] interval value 'hourly'" in caplog.text
        assert "SEND_INTERVAL" not in caplog.text

    def test_warning_names_env_source(self, caplog):
        build_config({"SEND_INTERVAL": "-3"})
        assert "SEND_INTERVAL must be positive" in caplog.text
