"""
Lightweight shared HTTP client for the upstream registry.

- Centralizes timeouts, the User-Agent header and error logging.
- Keeps dependencies limited to `requests`.
- Never retries: one call in, one upstream request out.
- Non-2xx responses are returned to the caller, not raised.

This module avoids any MCP coupling.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

import requests
from requests import Response


logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


DEFAULT_CONNECT_TIMEOUT_S = 3.05
DEFAULT_READ_TIMEOUT_S = 30.0


def _default_timeout() -> tuple[float, float]:
    return (
        _env_float("CTGOV_HTTP_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT_S),
        _env_float("CTGOV_HTTP_READ_TIMEOUT", DEFAULT_READ_TIMEOUT_S),
    )


def _default_user_agent() -> str:
    return os.getenv("CTGOV_HTTP_USER_AGENT", "clinical-trials-mcp/1.0")


@dataclass(frozen=True)
class HttpClientConfig:
    timeout: tuple[float, float] = field(default_factory=_default_timeout)
    user_agent: str = field(default_factory=_default_user_agent)


class HttpClient:
    """A small wrapper around `requests.Session` with sane defaults."""

    def __init__(self, *, config: HttpClientConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or HttpClientConfig()
        self.session = session or requests.Session()
        # requests.Session ships its own UA/Accept defaults; replace them.
        self.session.headers.update({"User-Agent": self.config.user_agent, "Accept": "application/json"})

    def get(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: tuple[float, float] | float | None = None,
        **kwargs: Any,
    ) -> Response:
        """Perform a single GET. Transport failures propagate as `requests.RequestException`."""
        t0 = time.perf_counter()
        try:
            resp = self.session.get(
                url,
                headers=dict(headers) if headers else None,
                timeout=timeout or self.config.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            ms = int((time.perf_counter() - t0) * 1000)
            logger.warning("HTTP GET %s failed (ms=%s): %s", url, ms, str(e))
            raise

        ms = int((time.perf_counter() - t0) * 1000)
        if not resp.ok:
            logger.warning("HTTP GET %s returned %s %s (ms=%s)", url, resp.status_code, resp.reason, ms)
        else:
            logger.debug("HTTP GET %s -> %s (ms=%s)", url, resp.status_code, ms)
        return resp


# A single shared client is sufficient: the session only pools connections.
DEFAULT_HTTP_CLIENT = HttpClient()
