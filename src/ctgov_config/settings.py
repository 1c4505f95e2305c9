from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://clinicaltrials.gov/api/v2"
DEFAULT_HTTP_PORT = 7800
DEFAULT_HTTP_HOST = "0.0.0.0"
DEFAULT_TRANSPORT = "stdio"

TRANSPORTS = ("stdio", "streamable-http")


def _find_repo_root(start: Path) -> Optional[Path]:
    """Walk upward until we find pyproject.toml or .git."""
    start = start.resolve()
    for p in (start, *start.parents):
        if (p / "pyproject.toml").exists() or (p / ".git").exists():
            return p
    return None


@lru_cache(maxsize=1)
def repo_root() -> Path:
    """Best-effort repository root discovery.

    Order of precedence:
      1) CTGOV_REPO_ROOT (explicit override)
      2) walk upward from current working directory
      3) walk upward from this module file's directory
    """
    explicit = os.getenv("CTGOV_REPO_ROOT")
    if explicit:
        p = Path(explicit).expanduser().resolve()
        if not p.is_dir():
            raise RuntimeError(f"CTGOV_REPO_ROOT does not exist or is not a directory: {p}")
        return p

    cwd = Path.cwd().resolve()
    root = _find_repo_root(cwd)
    if root:
        return root

    here_dir = Path(__file__).resolve().parent
    root = _find_repo_root(here_dir)
    if root:
        return root

    return cwd


@lru_cache(maxsize=1)
def load_env_once() -> Optional[Path]:
    """
    Load dotenv exactly once. Precedence:
      1) CTGOV_ENV_FILE (explicit path)
      2) repo-root/.env
      3) repo-root/config/.env
    """
    explicit = os.getenv("CTGOV_ENV_FILE")
    candidates = []

    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(repo_root() / ".env")
    candidates.append(repo_root() / "config" / ".env")

    for p in candidates:
        p = p.resolve()
        if p.is_file():
            # Do NOT override already-set environment variables
            load_dotenv(dotenv_path=str(p), override=False)
            return p

    return None


def base_url() -> str:
    """Upstream registry base URL. Override with CTGOV_BASE_URL."""
    return os.getenv("CTGOV_BASE_URL", DEFAULT_BASE_URL).rstrip("/")


def http_port() -> int:
    """Port for the streamable-http transport. Override with PORT."""
    raw = os.getenv("PORT")
    if not raw:
        return DEFAULT_HTTP_PORT
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"PORT must be an integer, got {raw!r}") from None


def http_host() -> str:
    return os.getenv("CTGOV_MCP_HOST", DEFAULT_HTTP_HOST)


def mcp_transport() -> str:
    """'stdio' or 'streamable-http'. Override with MCP_TRANSPORT."""
    return os.getenv("MCP_TRANSPORT", DEFAULT_TRANSPORT).strip().lower()


def telemetry_dir() -> Path:
    """
    Default telemetry dir. Override with CTGOV_TELEMETRY_DIR.
    """
    p = os.getenv("CTGOV_TELEMETRY_DIR")
    if p:
        return Path(p).expanduser().resolve()
    return (repo_root() / "artifacts" / "telemetry").resolve()


def telemetry_disabled() -> bool:
    return os.getenv("CTGOV_DISABLE_TELEMETRY", "0").strip().lower() in {"1", "true", "yes"}


def configure_logging() -> None:
    """
    Configure logging explicitly. No import-time side effects.
    Idempotent: if logging is already configured, do nothing.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = os.getenv("CTGOV_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = os.getenv(
        "CTGOV_LOG_FORMAT",
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # basicConfig writes to stderr; stdout belongs to the stdio transport.
    logging.basicConfig(level=level, format=fmt)


def init_runtime(*, configure_logs: bool = True, load_env: bool = True) -> None:
    """
    Call this from entrypoints only (servers, scripts).
    """
    if load_env:
        load_env_once()
    if configure_logs:
        configure_logging()
