"""
Smoke script for MCP reachability against the live registry.

It performs:
 1) Spawns the Clinical Trials MCP server via stdio
 2) Lists tools
 3) Calls get_study for CTGOV_SMOKE_NCT_ID (default NCT04267848)
 4) Calls specific_fields_in_study for CTGOV_SMOKE_COND with a small field list
 5) Prints the telemetry lines the server wrote for those calls
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Any

from ctgov_common.telemetry import telemetry_recent
from ctgov_config.settings import telemetry_dir


def _unwrap_tool_result(res: Any) -> str:
    content = getattr(res, "content", None)
    if not content:
        return str(res)
    return getattr(content[0], "text", str(content[0]))


def _looks_like_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


async def smoke() -> bool:
    # Lazy import so the script remains usable outside a full dev env
    from mcp import ClientSession
    from mcp.client.stdio import StdioServerParameters, stdio_client

    python_cmd = os.getenv("MCP_PYTHON") or sys.executable
    nct_id = os.getenv("CTGOV_SMOKE_NCT_ID", "NCT04267848")
    cond = os.getenv("CTGOV_SMOKE_COND", "breast cancer")

    print(f"[smoke] Python: {python_cmd}")
    print(f"[smoke] nct_id={nct_id}, cond={cond}")

    server = StdioServerParameters(
        command=python_cmd,
        args=["-m", "ctgov_mcp"],
        # share the telemetry dir so the records can be read back below
        env=dict(os.environ, MCP_TRANSPORT="stdio", CTGOV_TELEMETRY_DIR=str(telemetry_dir())),
    )

    ok = True

    async with stdio_client(server) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            print("\n[smoke] TOOLS:")
            for t in tools.tools:
                print(f" - {t.name}")

            calls = [
                ("get_study", {"nct_id": nct_id}),
                (
                    "specific_fields_in_study",
                    {"cond": cond, "fields": "NCTId,BriefTitle,OverallStatus", "pageSize": 3},
                ),
            ]
            for name, args in calls:
                res = await session.call_tool(name, args)
                text = _unwrap_tool_result(res)
                print(f"\n[smoke] CALL {name}({args}):")
                print(text[:2000])
                if res.isError or not _looks_like_json(text):
                    print(f"[smoke] WARN: {name} did not return a JSON document")
                    ok = False

    print(f"\n[smoke] TELEMETRY ({telemetry_dir()}):")
    for rec in telemetry_recent(n=len(calls))["records"]:
        print(f" - {rec.get('name')} ok={rec.get('ok')} ms={rec.get('ms')} corr_id={rec.get('corr_id')}")

    return ok


def main() -> int:
    ok = asyncio.run(smoke())
    print("\n[smoke] OK" if ok else "\n[smoke] Completed with warnings")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
