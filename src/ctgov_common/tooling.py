from __future__ import annotations

import functools
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from ctgov_common.context import get_request_id, new_request_id, set_request_id
from ctgov_common.telemetry import log_event


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared helpers for MCP tool handlers
# ---------------------------------------------------------------------------


_REDACTION_KEYS = {"auth_bearer", "authorization", "token", "access_token", "api_key", "apikey"}


def sanitize_args_for_log(args: dict | None) -> dict:
    """Remove obvious secrets from args (telemetry layer also redacts)."""
    out: dict[str, Any] = {}
    for k, v in (args or {}).items():
        out[str(k)] = "***redacted***" if str(k).lower() in _REDACTION_KEYS else v
    return out


def _never_failed(payload: Any) -> bool:
    return False


@dataclass(frozen=True)
class InstrumentConfig:
    kind: str
    name: str
    client_id: str

    # tells the decorator whether a returned payload represents a failure
    is_failure: Callable[[Any], bool] = _never_failed

    # correlation id behavior
    new_corr_id_per_call: bool = True


def instrument_async_tool(cfg: InstrumentConfig):
    """Decorator for async tools: correlation id + one telemetry line per call.

    Exceptions are logged and re-raised so the MCP layer reports them as tool errors.
    """

    def decorator(fn: Callable[..., Awaitable[Any]]):
        fn_sig = inspect.signature(fn)

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any):
            corr_id = get_request_id()
            if cfg.new_corr_id_per_call or not corr_id:
                corr_id = new_request_id()
                set_request_id(corr_id)

            t0 = time.perf_counter()
            bound = fn_sig.bind_partial(*args, **kwargs)
            args_for_log: dict[str, Any] = {"args": sanitize_args_for_log(dict(bound.arguments))}

            try:
                payload = await fn(*args, **kwargs)
            except Exception as e:
                ms = int((time.perf_counter() - t0) * 1000)
                args_for_log["error"] = {"code": "internal", "message": str(e)}
                log_event(cfg.kind, cfg.name, args_for_log, ok=False, ms=ms, client_id=cfg.client_id, corr_id=corr_id)
                logger.exception("Tool %s failed (corr_id=%s)", cfg.name, corr_id)
                raise

            ms = int((time.perf_counter() - t0) * 1000)
            ok = not cfg.is_failure(payload)
            log_event(cfg.kind, cfg.name, args_for_log, ok=ok, ms=ms, client_id=cfg.client_id, corr_id=corr_id)
            return payload

        # Preserve signature for schema generation
        wrapper.__signature__ = fn_sig  # type: ignore[attr-defined]
        return wrapper

    return decorator
