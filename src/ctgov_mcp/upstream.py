from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

import requests

from ctgov_mcp.core_infrastructure.http_client import DEFAULT_HTTP_CLIENT, HttpClient


logger = logging.getLogger(__name__)

ERROR_SOURCE = "ClinicalTrials.gov"


@dataclass(frozen=True)
class UpstreamError:
    status: int
    status_text: str
    body: str

    def to_text(self) -> str:
        return f"{ERROR_SOURCE} error: {self.status} {self.status_text}\n{self.body}"


@dataclass(frozen=True)
class RawBody:
    """A 2xx body that is not JSON (e.g. format=csv); passed through as-is."""

    text: str


UpstreamResult = Union[UpstreamError, RawBody, Any]


def fetch(url: str, *, client: HttpClient | None = None) -> UpstreamResult:
    """GET `url` once and classify the response. Transport errors propagate."""
    resp = (client or DEFAULT_HTTP_CLIENT).get(url)

    if not 200 <= resp.status_code < 300:
        return UpstreamError(status=resp.status_code, status_text=resp.reason or "", body=resp.text)

    try:
        return resp.json()
    except ValueError:
        logger.info("Upstream returned a non-JSON body for %s", url)
        return RawBody(resp.text)


def render(result: UpstreamResult) -> str:
    if isinstance(result, UpstreamError):
        return result.to_text()
    if isinstance(result, RawBody):
        return result.text
    return json.dumps(result, indent=2, ensure_ascii=False)


def call_upstream(url: str, *, client: HttpClient | None = None) -> str:
    """One outbound request rendered as tool text; failures become descriptive text."""
    try:
        result = fetch(url, client=client)
    except requests.RequestException as e:
        return f"{ERROR_SOURCE} request failed: {e}"
    return render(result)


def is_failure_text(text: Any) -> bool:
    return isinstance(text, str) and text.startswith(f"{ERROR_SOURCE} ")
