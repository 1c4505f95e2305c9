from __future__ import annotations

import pytest

from tests.helpers.mcp_runtime import build_test_env, mcp_stdio_session


@pytest.fixture(autouse=True)
def _isolated_telemetry(tmp_path, monkeypatch):
    """Keep telemetry lines out of the repo during tests."""
    monkeypatch.setenv("CTGOV_TELEMETRY_DIR", str(tmp_path / "telemetry"))
    monkeypatch.delenv("CTGOV_DISABLE_TELEMETRY", raising=False)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def ctgov_session(tmp_path):
    """Initialized session for the Clinical Trials MCP server (stdio transport)."""
    env = build_test_env(tmp_path)
    async with mcp_stdio_session("ctgov_mcp", env=env) as session:
        yield session
