"""
MCP session layer: JSON-RPC protocol, per-session transports and the registry.
"""

from querygate.mcp.registry import SessionRegistry
from querygate.mcp.session import SessionState, SessionTransport

__all__ = ["SessionRegistry", "SessionState", "SessionTransport"]
