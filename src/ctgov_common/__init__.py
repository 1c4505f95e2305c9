"""Helpers shared by MCP tool handlers: correlation ids, telemetry, instrumentation."""
