"""
API Package

FastAPI application for QueryGate.

Subpackages:
- routers: MCP endpoint, query API, query memory

Main module:
- main: FastAPI application setup and lifespan
"""
