import inspect

import pytest

import ctgov_common.tooling as tooling
from ctgov_common.tooling import InstrumentConfig, instrument_async_tool, sanitize_args_for_log


@pytest.fixture
def events(monkeypatch):
    captured = []
    monkeypatch.setattr(tooling, "log_event", lambda *a, **k: captured.append((a, k)))
    return captured


def test_sanitize_args_redacts_secret_keys():
    out = sanitize_args_for_log({"cond": "flu", "api_key": "s3cr3t"})
    assert out == {"cond": "flu", "api_key": "***redacted***"}


@pytest.mark.asyncio
async def test_instrument_logs_success_and_preserves_signature(events):
    cfg = InstrumentConfig(kind="tool", name="t.ok", client_id="C1")

    @instrument_async_tool(cfg)
    async def fn(cond: str, pageSize: int = 20) -> str:  # noqa: N803
        return "{}"

    assert await fn("flu") == "{}"
    assert inspect.iscoroutinefunction(fn)
    assert list(inspect.signature(fn).parameters) == ["cond", "pageSize"]

    (args, kwargs), = events
    assert args[0:2] == ("tool", "t.ok")
    assert args[2]["args"] == {"cond": "flu"}
    assert kwargs["ok"] is True
    assert kwargs["client_id"] == "C1"
    assert kwargs["corr_id"]


@pytest.mark.asyncio
async def test_instrument_marks_failure_payload(events):
    cfg = InstrumentConfig(kind="tool", name="t.fail", client_id="C1", is_failure=lambda p: p.startswith("ERR"))

    @instrument_async_tool(cfg)
    async def fn() -> str:
        return "ERR 500"

    assert await fn() == "ERR 500"
    assert events[0][1]["ok"] is False


@pytest.mark.asyncio
async def test_instrument_reraises_and_logs_exceptions(events):
    cfg = InstrumentConfig(kind="tool", name="t.boom", client_id="C1")

    @instrument_async_tool(cfg)
    async def fn():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await fn()

    (args, kwargs), = events
    assert kwargs["ok"] is False
    assert args[2]["error"] == {"code": "internal", "message": "boom"}


@pytest.mark.asyncio
async def test_new_corr_id_per_call(events):
    cfg = InstrumentConfig(kind="tool", name="t.ids", client_id="C1")

    @instrument_async_tool(cfg)
    async def fn():
        return "{}"

    await fn()
    await fn()
    assert events[0][1]["corr_id"] != events[1][1]["corr_id"]


@pytest.mark.asyncio
async def test_unwritable_telemetry_dir_does_not_fail_the_call(tmp_path, monkeypatch, caplog):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    monkeypatch.setenv("CTGOV_TELEMETRY_DIR", str(blocker / "telemetry"))
    cfg = InstrumentConfig(kind="tool", name="t.io", client_id="C1")

    @instrument_async_tool(cfg)
    async def fn():
        return "{}"

    assert await fn() == "{}"
    assert "Telemetry write" in caplog.text
