"""
Unit tests for configuration and the command line.
"""

import pytest

from tryfiles.__main__ import build_parser, config_from_args, main
from tryfiles.config import ServerConfig


ENV_VARS = [
    "TRYFILES_HOST", "TRYFILES_PORT", "TRYFILES_WORKERS", "TRYFILES_TIMEOUT",
    "TRYFILES_ROOT", "TRYFILES_TRY", "TRYFILES_STRIP_PREFIX",
    "TRYFILES_STRIP_SUFFIX", "TRYFILES_POOL_SIZE", "TRYFILES_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.try_files == ["/index.html"]
        assert config.root_dir is None
        assert config.pool_size == 0
        config.validate()

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TRYFILES_PORT", "3000")
        monkeypatch.setenv("TRYFILES_ROOT", str(tmp_path))
        monkeypatch.setenv("TRYFILES_TRY", "/404.html, /index.html,")
        monkeypatch.setenv("TRYFILES_STRIP_PREFIX", "/app")
        monkeypatch.setenv("TRYFILES_POOL_SIZE", "8")

        config = ServerConfig.from_env()

        assert config.port == 3000
        assert config.root_dir == str(tmp_path)
        assert config.try_files == ["/404.html", "/index.html"]
        assert config.strip_prefix == "/app"
        assert config.strip_suffix is None
        assert config.pool_size == 8

    def test_empty_try_env_disables_fallbacks(self, monkeypatch):
        monkeypatch.setenv("TRYFILES_TRY", "")

        assert ServerConfig.from_env().try_files == []

    @pytest.mark.parametrize("changes", [
        {"port": -1},
        {"port": 65536},
        {"min_workers": 0},
        {"min_workers": 8, "max_workers": 4},
        {"buffer_size": 10},
        {"timeout": 0},
        {"pool_size": -1},
        {"cache_max_age": -5},
        {"root_dir": "/definitely/not/here"},
        {"try_files": ["index.html"]},
        {"log_level": "LOUD"},
    ])
    def test_validate_rejects(self, changes):
        config = ServerConfig(**changes)

        with pytest.raises(ValueError):
            config.validate()

    def test_validate_accepts_port_zero(self):
        ServerConfig(port=0).validate()


class TestCommandLine:
    """Tests for argument parsing."""

    def parse(self, *argv):
        return config_from_args(build_parser().parse_args(list(argv)))

    def test_root_and_fallbacks(self, tmp_path):
        config = self.parse(str(tmp_path), "--try", "/404.html", "-t", "/index.html")

        assert config.root_dir == str(tmp_path)
        assert config.try_files == ["/404.html", "/index.html"]

    def test_empty_try_disables_fallbacks(self):
        assert self.parse("--try", "").try_files == []

    def test_rewrites_and_network(self):
        config = self.parse("--strip-prefix", "/app", "--strip-suffix", ".html",
                            "-H", "0.0.0.0", "-p", "9000", "-w", "3", "--pool-size", "16")

        assert config.strip_prefix == "/app"
        assert config.strip_suffix == ".html"
        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert (config.min_workers, config.max_workers) == (3, 6)
        assert config.pool_size == 16

    def test_flags_override_env(self, monkeypatch):
        monkeypatch.setenv("TRYFILES_PORT", "3000")
        monkeypatch.setenv("TRYFILES_LOG_LEVEL", "DEBUG")

        config = self.parse("--port", "4000")

        assert config.port == 4000
        assert config.log_level == "DEBUG"

    def test_bad_root_exits_with_error(self, capsys):
        assert main(["/definitely/not/here"]) == 1
        assert "root_dir" in capsys.readouterr().err
