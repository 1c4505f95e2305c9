from __future__ import annotations

import datetime as _dt
import json
import logging
from typing import Any

from ctgov_common.context import get_request_id
from ctgov_config.settings import telemetry_dir, telemetry_disabled

logger = logging.getLogger(__name__)

REDACT_TOKEN = "***redacted***"
TELEMETRY_FILE = "mcp-telemetry.jsonl"

_SECRET_KEYS = {"authorization", "auth_bearer", "access_token", "token", "api_key", "apikey"}


def _redact_secrets(obj: Any) -> Any:
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.strip().lower() in _SECRET_KEYS:
                out[k] = REDACT_TOKEN
            else:
                out[k] = _redact_secrets(v)
        return out
    if isinstance(obj, list):
        return [_redact_secrets(x) for x in obj]
    return obj


def log_event(
    kind: str,
    name: str,
    args: dict | None = None,
    ok: bool = True,
    ms: int = 0,
    *,
    client_id: str | None = None,
    corr_id: str | None = None,
    telemetry_file: str = TELEMETRY_FILE,
) -> None:
    """
    Append JSONL telemetry for tools.
    """
    if telemetry_disabled():
        return

    rid = get_request_id()
    payload = {} if args is None else dict(args)

    rec = {
        "ts": _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "name": name,
        "client_id": client_id,
        "request_id": rid,
        "corr_id": corr_id or rid,
        "args": payload,
        "ok": bool(ok),
        "ms": int(ms),
    }

    line = json.dumps(_redact_secrets(rec), ensure_ascii=False, default=str) + "\n"

    # best-effort: an unwritable telemetry dir must never fail the tool call
    d = telemetry_dir()
    try:
        d.mkdir(parents=True, exist_ok=True)
        with (d / telemetry_file).open("a", encoding="utf-8") as f:
            f.write(line)
    except OSError as e:
        logger.warning("Telemetry write to %s failed: %s", d, e)


def telemetry_recent(n: int = 50, telemetry_file: str = TELEMETRY_FILE) -> dict:
    """
    Return last N telemetry records (bounded to 1..200), secrets redacted.
    """
    p = telemetry_dir() / telemetry_file
    if not p.exists():
        return {"records": []}

    try:
        n_int = int(n)
    except (TypeError, ValueError):
        n_int = 50
    n_int = max(1, min(n_int, 200))

    lines = p.read_text(encoding="utf-8").splitlines()

    out = []
    for line in lines[-n_int:]:
        try:
            rec = json.loads(line)
        except json.JSONDecodeError:
            continue
        out.append(_redact_secrets(rec))

    return {"records": out}
