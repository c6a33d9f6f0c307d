"""
Unit tests for server configuration and the CLI entry point.
"""

import socket
from pathlib import Path

import pytest

from pageserver import ServerConfig
from pageserver.__main__ import build_parser, main


class TestServerConfig:
    """Tests for ServerConfig defaults and validation."""

    def test_defaults(self):
        """Test default configuration values."""
        config = ServerConfig()

        assert config.address == ("127.0.0.1", 7878)
        assert config.workers == 4
        assert config.pages_dir == "pages"
        config.validate()

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"workers": 0},
        {"backlog": 0},
        {"buffer_size": 100},
        {"timeout": 0},
        {"pages_dir": ""},
        {"log_level": "CHATTY"},
    ])
    def test_invalid_values(self, overrides):
        """Test validate() rejects out-of-range values."""
        with pytest.raises(ValueError):
            ServerConfig(**overrides).validate()

    def test_timeout_can_be_disabled(self):
        """Test timeout=None is allowed."""
        ServerConfig(timeout=None).validate()


class TestCLI:
    """Tests for python -m pageserver."""

    def test_no_arguments_uses_defaults(self):
        """Test the CLI defaults match ServerConfig."""
        args = build_parser().parse_args([])

        assert (args.host, args.port, args.workers, args.pages) == ("127.0.0.1", 7878, 4, "pages")

    def test_missing_pages_directory_exits_1(self, tmp_path: Path, monkeypatch, free_port: int, capsys):
        """Test a missing pages directory exits with status 1."""
        monkeypatch.chdir(tmp_path)

        assert main(["--port", str(free_port)]) == 1
        assert "Pages directory not found" in capsys.readouterr().err

    def test_missing_absolute_pages_directory_exits_1(self, tmp_path: Path, free_port: int, capsys):
        """Test an absolute --pages path gets the same clear message."""
        missing = tmp_path / "nowhere"

        assert main(["--pages", str(missing), "--port", str(free_port)]) == 1
        assert f"Pages directory not found: {missing}" in capsys.readouterr().err

    def test_zero_workers_exits_1(self, site: Path, monkeypatch):
        """Test an invalid worker count exits with status 1."""
        monkeypatch.chdir(site)
        assert main(["--workers", "0"]) == 1

    def test_port_in_use_exits_1(self, site: Path, monkeypatch):
        """Test a busy port exits with status 1."""
        monkeypatch.chdir(site)

        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            assert main(["--port", str(port)]) == 1
