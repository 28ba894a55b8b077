"""Unit tests for client configuration."""

import os

import pytest

from tsserver_client.config import (
    DEFAULT_SERVER_PATH,
    DISABLE_TYPING_ACQUISITION_FLAG,
    ClientConfig,
    resolve_server_path,
)

ENV_VARS = ["TSSERVER_PATH", "TSSERVER_ARGS", "TSSERVER_CWD", "TSSERVER_REQUEST_TIMEOUT"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestClientConfig:
    """Test defaults and environment loading."""

    def test_defaults(self):
        config = ClientConfig()

        assert config.server_path == DEFAULT_SERVER_PATH
        assert config.request_timeout is None
        assert config.fail_pending_on_exit is True
        assert config.completion_command == "completionInfo"
        assert config.max_line_bytes > 64 * 1024

    def test_launch_args_end_with_flag(self):
        config = ClientConfig(server_args=["--locale", "de"])

        assert config.launch_args() == ["--locale", "de", DISABLE_TYPING_ACQUISITION_FLAG]
        assert config.server_args == ["--locale", "de"]

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TSSERVER_PATH", "/opt/ts/tsserver")
        monkeypatch.setenv("TSSERVER_ARGS", "--locale en --logFile '/tmp/ts log.txt'")
        monkeypatch.setenv("TSSERVER_CWD", str(tmp_path))
        monkeypatch.setenv("TSSERVER_REQUEST_TIMEOUT", "2.5")

        config = ClientConfig.from_env()

        assert config.server_path == "/opt/ts/tsserver"
        assert config.server_args == ["--locale", "en", "--logFile", "/tmp/ts log.txt"]
        assert config.working_directory == str(tmp_path)
        assert config.request_timeout == 2.5

    def test_from_env_empty(self):
        config = ClientConfig.from_env()

        assert config == ClientConfig()

    def test_invalid_timeout_ignored(self, monkeypatch):
        monkeypatch.setenv("TSSERVER_REQUEST_TIMEOUT", "soon")

        config = ClientConfig.from_env()

        assert config.request_timeout is None


class TestResolveServerPath:
    def test_existing_path(self, tmp_path):
        server = tmp_path / "tsserver"
        server.write_text("")

        assert resolve_server_path(str(tmp_path / "." / "tsserver")) == str(server)

    def test_missing_path(self, tmp_path):
        assert resolve_server_path(str(tmp_path / "missing")) is None

    def test_expands_user(self, monkeypatch, tmp_path):
        (tmp_path / "tsserver").write_text("")
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("USERPROFILE", str(tmp_path))

        assert resolve_server_path(os.path.join("~", "tsserver")) == str(tmp_path / "tsserver")
