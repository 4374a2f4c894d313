"""
QueryGate Source Package

Safety-checked database access for chat and LLM-driven query generation.

Subpackages:
- api: FastAPI application, MCP endpoint and front-end routers
- core: Configuration, logging, prompts, exceptions
- database: Connection pool, query executor, schema catalog
- mcp: JSON-RPC protocol models and the session registry
- tools: list_tables / describe_table / query_database tool surface
- middleware: Audit trail and tool error translation
- services: Tiered natural-language query orchestration
- clients: HTTP client for a remote tool surface
- utils: SQL parsing, validation and response parsing
"""

__version__ = "1.0.0"
