import logging
import os

import pytest

import ctgov_config.settings as settings


def test_http_port_default_and_override(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    assert settings.http_port() == 7800

    monkeypatch.setenv("PORT", "8123")
    assert settings.http_port() == 8123


def test_http_port_rejects_garbage(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(RuntimeError):
        settings.http_port()


def test_base_url_strips_trailing_slash(monkeypatch):
    monkeypatch.delenv("CTGOV_BASE_URL", raising=False)
    assert settings.base_url() == "https://clinicaltrials.gov/api/v2"

    monkeypatch.setenv("CTGOV_BASE_URL", "http://mirror.test/api/v2/")
    assert settings.base_url() == "http://mirror.test/api/v2"


def test_mcp_transport_normalized(monkeypatch):
    monkeypatch.delenv("MCP_TRANSPORT", raising=False)
    assert settings.mcp_transport() == "stdio"

    monkeypatch.setenv("MCP_TRANSPORT", " Streamable-HTTP ")
    assert settings.mcp_transport() == "streamable-http"


def test_load_env_once_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / "custom.env"
    env_file.write_text("CTGOV_TEST_A=from-file\nCTGOV_TEST_B=from-file\n", encoding="utf-8")
    monkeypatch.setenv("CTGOV_ENV_FILE", str(env_file))
    monkeypatch.setenv("CTGOV_TEST_A", "from-env")
    monkeypatch.delenv("CTGOV_TEST_B", raising=False)
    settings.load_env_once.cache_clear()

    try:
        assert settings.load_env_once() == env_file.resolve()
        assert os.environ["CTGOV_TEST_A"] == "from-env"
        assert os.environ["CTGOV_TEST_B"] == "from-file"
    finally:
        settings.load_env_once.cache_clear()
        monkeypatch.delenv("CTGOV_TEST_B", raising=False)


def test_configure_logging_is_idempotent(monkeypatch):
    root = logging.getLogger()
    handlers = list(root.handlers)
    monkeypatch.setattr(root, "handlers", handlers or [logging.NullHandler()])
    before = list(root.handlers)

    settings.configure_logging()

    assert root.handlers == before


def test_configure_logging_applies_level_when_unconfigured(monkeypatch):
    root = logging.getLogger()
    old_level = root.level
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setenv("CTGOV_LOG_LEVEL", "debug")

    try:
        settings.configure_logging()

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
    finally:
        root.setLevel(old_level)


def test_http_host_default_and_override(monkeypatch):
    monkeypatch.delenv("CTGOV_MCP_HOST", raising=False)
    assert settings.http_host() == "0.0.0.0"

    monkeypatch.setenv("CTGOV_MCP_HOST", "127.0.0.1")
    assert settings.http_host() == "127.0.0.1"
