import importlib
import logging

import pytest

from hotswap import config


@pytest.fixture
def reload_config(monkeypatch):
    """Reload the config module after setting env vars, and restore it from the original environment afterwards."""
    for name in ("DEBUG", "HOTSWAP_LOG", "HOTSWAP_MAX_WORKERS", "AWS_REGION", "AWS_DEFAULT_REGION"):
        monkeypatch.delenv(name, raising=False)

    root_level = logging.getLogger().level
    hotswap_level = logging.getLogger("hotswap").level

    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(config)

    yield _reload

    monkeypatch.undo()
    importlib.reload(config)
    logging.getLogger().setLevel(root_level)
    logging.getLogger("hotswap").setLevel(hotswap_level)


class TestEnvParsing:
    @pytest.mark.parametrize("value", ["1", "true", "True", " TRUE "])
    def test_is_env_true(self, monkeypatch, value):
        monkeypatch.setenv("MY_FLAG", value)
        assert config.is_env_true("MY_FLAG")

    @pytest.mark.parametrize("value", ["0", "false", "yes", ""])
    def test_is_env_not_true(self, monkeypatch, value):
        monkeypatch.setenv("MY_FLAG", value)
        assert not config.is_env_true("MY_FLAG")

    def test_unset_env(self, monkeypatch):
        monkeypatch.delenv("MY_FLAG", raising=False)
        assert not config.is_env_true("MY_FLAG")

    def test_eval_log_type(self, monkeypatch):
        monkeypatch.setenv("MY_LOG", "Trace")
        assert config.eval_log_type("MY_LOG") == "trace"
        monkeypatch.setenv("MY_LOG", "verbose")
        assert config.eval_log_type("MY_LOG") is False


class TestConfig:
    def test_defaults(self, reload_config):
        cfg = reload_config()

        assert cfg.HOTSWAP_LOG is False
        assert cfg.DEBUG is False
        assert cfg.HOTSWAP_MAX_WORKERS == 10
        assert cfg.DEFAULT_REGION == "us-east-1"
        assert not cfg.is_trace_logging_enabled()

    def test_trace_log_enables_debug(self, reload_config):
        cfg = reload_config(HOTSWAP_LOG="trace")

        assert cfg.DEBUG
        assert cfg.is_trace_logging_enabled()
        assert logging.getLogger("hotswap").level == logging.DEBUG

    def test_max_workers(self, reload_config):
        assert reload_config(HOTSWAP_MAX_WORKERS="3").HOTSWAP_MAX_WORKERS == 3

    def test_region_precedence(self, reload_config):
        assert reload_config(AWS_DEFAULT_REGION="eu-west-1").DEFAULT_REGION == "eu-west-1"
        assert reload_config(AWS_REGION="eu-central-1").DEFAULT_REGION == "eu-central-1"
