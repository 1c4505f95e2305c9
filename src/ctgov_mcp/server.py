import argparse
import asyncio
import logging
import os
import sys
from typing import Annotated, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from pydantic import Field

from ctgov_common.tooling import InstrumentConfig, instrument_async_tool
from ctgov_config.settings import TRANSPORTS, base_url, http_host, http_port, init_runtime, mcp_transport
from ctgov_mcp import SERVER_NAME
from ctgov_mcp.queries import (
    DEFAULT_COUNT_TOTAL,
    DEFAULT_FORMAT,
    DEFAULT_PAGE_SIZE,
    GetStudyQuery,
    ListStudiesQuery,
    SpecificFieldsQuery,
)
from ctgov_mcp.upstream import call_upstream, is_failure_text


logger = logging.getLogger(__name__)

MCP_CLIENT_ID = os.getenv("MCP_CLIENT_ID", "ctgov_mcp")


def _instrument(name: str):
    return instrument_async_tool(
        InstrumentConfig(kind="tool", name=name, client_id=MCP_CLIENT_ID, is_failure=is_failure_text)
    )


mcp = FastMCP(
    name=SERVER_NAME,
    instructions="Read-only access to the ClinicalTrials.gov v2 registry: search studies and fetch single records.",
    host=http_host(),
    stateless_http=True,
)

_LOOPBACK_HOSTS = {"127.0.0.1", "localhost", "::1"}


async def _fetch_text(url: str) -> str:
    # requests blocks; keep the event loop free for concurrent calls
    return await asyncio.to_thread(call_upstream, url)


# Parameter names below are the public tool schema, hence camelCase.
Cond = Annotated[str, Field(min_length=1, description="Maps to query.cond. Main condition, e.g. 'breast cancer'.")]
Term = Annotated[Optional[str], Field(description="Maps to query.term. Extra free-text terms, e.g. 'HER2-positive'.")]
Locn = Annotated[
    Optional[str],
    Field(description="Maps to query.locn. Location text, e.g. 'San Francisco California United States'."),
]
OverallStatus = Annotated[
    Optional[str],
    Field(description="Maps to filter.overallStatus, e.g. 'RECRUITING,NOT_YET_RECRUITING'."),
]
PageSize = Annotated[int, Field(description="Maps to pageSize.")]
Format = Annotated[str, Field(description="Maps to format. Usually 'json'.")]
CountTotal = Annotated[str, Field(description="Maps to countTotal. Usually 'true'.")]
PageToken = Annotated[Optional[str], Field(description="Pagination token from previous response, if any.")]


@mcp.tool(name="list_studies", structured_output=False)
@_instrument("list_studies")
async def list_studies(
    cond: Cond,
    term: Term = None,
    locn: Locn = None,
    overallStatus: OverallStatus = None,  # noqa: N803
    pageSize: PageSize = DEFAULT_PAGE_SIZE,  # noqa: N803
    format: Format = DEFAULT_FORMAT,
    fields: Annotated[Optional[str], Field(description="Comma-separated list of fields to return.")] = None,
    countTotal: CountTotal = DEFAULT_COUNT_TOTAL,  # noqa: N803
    pageToken: PageToken = None,  # noqa: N803
) -> str:
    """Search ClinicalTrials.gov studies (GET /studies) by condition and optional filters."""
    query = ListStudiesQuery(
        cond=cond,
        term=term,
        locn=locn,
        overallStatus=overallStatus,
        pageSize=pageSize,
        format=format,
        fields=fields,
        countTotal=countTotal,
        pageToken=pageToken,
    )
    return await _fetch_text(query.url(base_url()))


@mcp.tool(name="get_study", structured_output=False)
@_instrument("get_study")
async def get_study(
    nct_id: Annotated[str, Field(min_length=1, description="NCT ID of the study, e.g. 'NCT04267848'.")],
) -> str:
    """Fetch a single study record (GET /studies/{nctId})."""
    query = GetStudyQuery(nct_id=nct_id)
    return await _fetch_text(query.url(base_url()))


@mcp.tool(name="specific_fields_in_study", structured_output=False)
@_instrument("specific_fields_in_study")
async def specific_fields_in_study(
    cond: Annotated[str, Field(min_length=1, description="Maps to query.cond. Main condition.")],
    fields: Annotated[str, Field(description="Required. Comma-separated fields to return.")],
    term: Annotated[Optional[str], Field(description="Maps to query.term.")] = None,
    locn: Annotated[Optional[str], Field(description="Maps to query.locn.")] = None,
    overallStatus: Annotated[Optional[str], Field(description="Maps to filter.overallStatus.")] = None,  # noqa: N803
    pageSize: PageSize = DEFAULT_PAGE_SIZE,  # noqa: N803
    format: Format = DEFAULT_FORMAT,
    countTotal: CountTotal = DEFAULT_COUNT_TOTAL,  # noqa: N803
    pageToken: PageToken = None,  # noqa: N803
) -> str:
    """Search studies like list_studies, but only return the requested fields."""
    query = SpecificFieldsQuery(
        cond=cond,
        fields=fields,
        term=term,
        locn=locn,
        overallStatus=overallStatus,
        pageSize=pageSize,
        format=format,
        countTotal=countTotal,
        pageToken=pageToken,
    )
    return await _fetch_text(query.url(base_url()))


def configure_http(host: str, port: int) -> None:
    """Bind settings for streamable-http. Loopback binds accept only local Host headers; other binds skip the check."""
    mcp.settings.host = host
    mcp.settings.port = port
    if host in _LOOPBACK_HOSTS:
        mcp.settings.transport_security = TransportSecuritySettings(
            enable_dns_rebinding_protection=True,
            allowed_hosts=["127.0.0.1:*", "localhost:*", "[::1]:*"],
            allowed_origins=["http://127.0.0.1:*", "http://localhost:*", "http://[::1]:*"],
        )
    else:
        mcp.settings.transport_security = TransportSecuritySettings(enable_dns_rebinding_protection=False)


def run(transport: str, *, port: int | None = None) -> None:
    if transport not in TRANSPORTS:
        raise ValueError(f"Unknown transport {transport!r}; expected one of: {', '.join(TRANSPORTS)}")

    if transport == "streamable-http":
        configure_http(http_host(), port if port is not None else http_port())
        logger.info("Clinical Trials MCP server listening on port %s", mcp.settings.port)

    mcp.run(transport=transport)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="ctgov-mcp", description="Clinical Trials MCP server")
    ap.add_argument("--transport", choices=TRANSPORTS, default=None, help="defaults to $MCP_TRANSPORT or stdio")
    ap.add_argument("--port", type=int, default=None, help="streamable-http port; defaults to $PORT or 7800")
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    # Entry points (console_scripts) call main() directly, so we must perform
    # runtime initialization here (dotenv + logging).
    init_runtime()
    args = _parse_args(argv)
    try:
        run(args.transport or mcp_transport(), port=args.port)
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
