"""MCP server exposing read-only ClinicalTrials.gov v2 queries as tools.

Runs over stdio (default) or stateless streamable HTTP.
"""

SERVER_NAME = "Clinical Trials MCP Server"
__version__ = "1.0.0"
