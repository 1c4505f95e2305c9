"""Runtime configuration (dotenv + logging) for the Clinical Trials MCP server."""
