"""
Tool Surface

Single entry point for the three database tools and the table schema
resources. Arguments are validated against the tool's pydantic model
before any handler runs; no exception escapes `call()`.
"""
from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from querygate.core.logging import get_logger
from querygate.database.query_executor import QueryExecutor
from querygate.database.schema_catalog import SchemaCatalog
from querygate.middleware.error_handler import handle_tool_error
from querygate.tools import resources
from querygate.tools.base import TOOL_DEFINITIONS, ToolResult
from querygate.tools.describe_table import describe_table
from querygate.tools.list_tables import list_tables
from querygate.tools.query_database import query_database

logger = get_logger(__name__)


class ToolSurface:
    """Dispatches tool invocations to their handlers."""

    def __init__(self, executor: QueryExecutor, catalog: SchemaCatalog | None = None):
        self.executor = executor
        self.catalog = catalog or SchemaCatalog(executor)
        self._handlers = {
            "list_tables": lambda args: list_tables(self.catalog, args),
            "describe_table": lambda args: describe_table(self.catalog, args),
            "query_database": lambda args: query_database(self.executor, args),
        }

    def list_tools(self) -> list[dict]:
        return [definition.to_wire() for definition in TOOL_DEFINITIONS.values()]

    def call(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Invoke a tool by name.

        Args:
            name: Tool name
            arguments: Raw argument mapping

        Returns:
            ToolResult; unknown tools and invalid arguments yield is_error=True
        """
        definition = TOOL_DEFINITIONS.get(name)
        if definition is None:
            return ToolResult.error(f"Unknown tool: {name}")

        try:
            args = definition.arguments_model.model_validate(arguments or {})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}" for err in e.errors()
            )
            return ToolResult.error(f"Invalid arguments for {name}: {problems}")

        logger.debug(f"Calling tool {name}")
        try:
            return self._handlers[name](args)
        except Exception as e:
            return handle_tool_error(e)

    def list_resources(self) -> list[dict]:
        return resources.list_resources(self.catalog)

    def list_resource_templates(self) -> list[dict]:
        return [resources.RESOURCE_TEMPLATE]

    def read_resource(self, uri: str) -> list[dict]:
        return resources.read_resource(self.catalog, uri)
