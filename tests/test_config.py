"""
Pytest tests for p4_scm.core.config module.
"""

from unittest.mock import MagicMock, patch

import pytest

from p4_scm.core.config import P4Config


@pytest.mark.unit
class TestFromSettings:
    """Test P4Config.from_settings."""

    def test_defaults(self):
        config = P4Config.from_settings({})
        assert config == P4Config()
        assert config.p4_path == "p4"
        assert config.max_file_per_command == 32
        assert config.changelist_search_max_results == 200

    def test_reads_prefixed_keys(self):
        config = P4Config.from_settings(
            {
                "perforce.command": "/usr/local/bin/p4",
                "perforce.port": "ssl:perforce:1666",
                "perforce.user": "super",
                "perforce.client": "cli",
                "perforce.maxFilePerCommand": "10",
                "perforce.commandTimeout": 30,
                "perforce.swarmHost": "https://swarm.example.com",
                "perforce.changelistSearch.maxResults": 50,
            }
        )
        assert config.p4_path == "/usr/local/bin/p4"
        assert config.port == "ssl:perforce:1666"
        assert config.user == "super"
        assert config.client == "cli"
        assert config.max_file_per_command == 10
        assert config.command_timeout == 30.0
        assert config.swarm_host == "https://swarm.example.com"
        assert config.changelist_search_max_results == 50

    def test_empty_values_fall_back(self):
        config = P4Config.from_settings({"perforce.command": "", "perforce.port": ""})
        assert config.p4_path == "p4"
        assert config.port is None

    def test_invalid_numbers_fall_back(self, caplog):
        config = P4Config.from_settings(
            {"perforce.maxFilePerCommand": "lots", "perforce.commandTimeout": "soon"}
        )
        assert config.max_file_per_command == 32
        assert config.command_timeout is None
        assert "Ignoring invalid" in caplog.text


@pytest.mark.unit
class TestFromEnvironment:
    """Test P4Config.from_environment with P4Python mocked."""

    @pytest.fixture
    def mock_p4(self):
        with patch("p4_scm.core.config.P4") as mock_p4_class:
            p4 = MagicMock()
            p4.port = "ssl:perforce:1666"
            p4.user = "super"
            p4.client = None
            p4.charset = "none"
            mock_p4_class.return_value = p4
            yield p4

    def test_reads_p4_settings(self, mock_p4, monkeypatch):
        monkeypatch.setenv("P4CLIENT", "env_client")
        config = P4Config.from_environment()
        assert config.port == "ssl:perforce:1666"
        assert config.user == "super"
        assert config.client == "env_client"
        assert config.charset is None

    def test_sets_cwd(self, mock_p4, tmp_path):
        P4Config.from_environment(str(tmp_path))
        assert mock_p4.cwd == str(tmp_path)

    def test_overrides(self, mock_p4, monkeypatch):
        monkeypatch.delenv("P4CLIENT", raising=False)
        config = P4Config.from_environment(user="other", max_file_per_command=4)
        assert config.user == "other"
        assert config.client is None
        assert config.max_file_per_command == 4


@pytest.mark.unit
class TestConnectionArguments:
    """Test global_args and get_swarm_link."""

    def test_global_args(self):
        config = P4Config(port="ssl:p4:1666", user="super", client="cli", charset="utf8")
        assert config.global_args() == [
            "-p",
            "ssl:p4:1666",
            "-u",
            "super",
            "-c",
            "cli",
            "-C",
            "utf8",
        ]

    def test_global_args_empty(self):
        assert P4Config().global_args() == []

    def test_swarm_link_appends_path(self):
        config = P4Config(swarm_host="https://swarm.example.com")
        assert config.get_swarm_link("45") == "https://swarm.example.com/changes/45"

    def test_swarm_link_placeholder(self):
        config = P4Config(swarm_host="https://swarm.example.com/review/${chnum}/files")
        assert config.get_swarm_link("45") == "https://swarm.example.com/review/45/files"

    def test_no_swarm_host(self):
        assert P4Config().get_swarm_link("45") is None
