"""
QueryGate FastAPI Application

Main FastAPI application entry point: MCP endpoint, front-end query API and
health check. The lifespan owns the connection pool and the session registry.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from querygate.api.dependencies import AppResources, build_resources
from querygate.core.config import settings
from querygate.core.logging import get_logger, setup_logging
from querygate.database.connection import ConnectionPool
from querygate.database.ssh_tunnel import SshTunnel

setup_logging()
logger = get_logger(__name__)

POOL_CLOSE_TIMEOUT = 5.0


async def shutdown_resources(resources: AppResources) -> None:
    """
    Close every session, then the tool client, then the pool, then the SSH tunnel.

    Each step is bounded; failures are logged so the next step still runs.
    """
    await resources.registry.close_all(settings.session_close_timeout)

    try:
        await resources.tool_client.close()
    except Exception as e:
        logger.warning(f"Error closing tool client: {e}")

    try:
        await asyncio.wait_for(asyncio.to_thread(resources.pool.close), timeout=POOL_CLOSE_TIMEOUT)
    except TimeoutError:
        logger.warning(f"Pool close timed out after {POOL_CLOSE_TIMEOUT}s, forcing exit")
    except Exception as e:
        logger.warning(f"Error closing connection pool: {e}")

    if resources.tunnel is not None:
        try:
            await asyncio.to_thread(resources.tunnel.close)
        except Exception as e:
            logger.warning(f"Error closing SSH tunnel: {e}")


async def open_resources() -> AppResources:
    """
    Start the SSH tunnel when enabled, build the object graph and ping the database.

    A tunnel opened here is closed again if the pool cannot initialize.
    """
    tunnel = None
    endpoint = None
    if settings.ssh_enabled:
        logger.info("Establishing SSH tunnel...")
        tunnel = SshTunnel()
        endpoint = await asyncio.to_thread(tunnel.start)

    resources = build_resources(pool=ConnectionPool(tunnel=endpoint), tunnel=tunnel)
    try:
        await asyncio.to_thread(resources.pool.initialize)
    except Exception:
        if tunnel is not None:
            await asyncio.to_thread(tunnel.close)
        raise
    return resources


def create_app(resources: AppResources | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        resources: Pre-built resources (tests inject fakes here). When omitted,
            the lifespan builds them and initializes the pool at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")

        if resources is None:
            # Startup fails if the database is unreachable
            app.state.resources = await open_resources()
        else:
            app.state.resources = resources

        logger.info(f"MCP endpoint: http://{settings.mcp_server_host}:{settings.mcp_server_port}/mcp")

        yield

        logger.info(f"Shutting down {settings.app_name}...")
        await shutdown_resources(app.state.resources)

    app = FastAPI(
        title=settings.app_name,
        description="Read-only SQL gateway and tiered natural-language query service for MySQL",
        version=settings.app_version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["mcp-session-id"],
    )

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint - returns basic application information"""
        return {"name": settings.app_name, "version": settings.app_version, "status": "running"}

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Simple health check endpoint for monitoring"""
        return {
            "status": "ok",
            "server": settings.mcp_server_name,
            "version": settings.mcp_server_version,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    from querygate.api.routers import mcp, query, query_memory

    app.include_router(mcp.router)
    app.include_router(query.router, prefix="/api/v1/query", tags=["Query"])
    app.include_router(query_memory.router, prefix="/api/v1/query-memory", tags=["Query Memory"])

    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(
        "querygate.api.main:app",
        host=settings.mcp_server_host,
        port=settings.mcp_server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
