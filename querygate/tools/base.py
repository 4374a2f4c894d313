"""
Tool Surface Types

Result envelope, argument models and tool definitions shared by the tool
handlers, the MCP session transport and the HTTP API.
"""
from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

VALID_TABLE_NAME = re.compile(r"^[a-zA-Z0-9_]+$")

ParamValue = str | int | float | bool | None


class TextContent(BaseModel):
    """One text block of a tool result"""

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """
    Outcome of one tool invocation.

    `is_error` is the only error signal that crosses the tool boundary.
    Serialized with `by_alias=True` it matches the MCP wire shape
    (`{"content": [...], "isError": bool}`).
    """

    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent]
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def text(cls, text: str) -> ToolResult:
        return cls(content=[TextContent(text=text)])

    @classmethod
    def error(cls, text: str) -> ToolResult:
        return cls(content=[TextContent(text=text)], is_error=True)

    @property
    def first_text(self) -> str:
        return self.content[0].text if self.content else ""


# =============================================================================
# ARGUMENT MODELS
# =============================================================================


class ToolArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ListTablesArgs(ToolArguments):
    pass


class DescribeTableArgs(ToolArguments):
    table_name: str = Field(description="The name of the table to describe")


class QueryDatabaseArgs(ToolArguments):
    sql: str = Field(description="SQL SELECT query to execute")
    params: list[ParamValue] | None = Field(
        default=None,
        description="Parameter values for ? placeholders in the query",
    )


class ToolDefinition(BaseModel):
    """Static description of a tool as advertised by tools/list"""

    name: str
    description: str
    arguments_model: type[ToolArguments]

    def to_wire(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.arguments_model.model_json_schema(),
        }


TOOL_DEFINITIONS: dict[str, ToolDefinition] = {
    "list_tables": ToolDefinition(
        name="list_tables",
        description="List all tables in the database with their type, approximate row count, and description.",
        arguments_model=ListTablesArgs,
    ),
    "describe_table": ToolDefinition(
        name="describe_table",
        description="Describe the columns, data types, keys, and indexes of a specific database table.",
        arguments_model=DescribeTableArgs,
    ),
    "query_database": ToolDefinition(
        name="query_database",
        description=(
            "Execute a read-only SQL SELECT query against the database. Only SELECT statements "
            "are allowed. Use ? placeholders for parameterized values."
        ),
        arguments_model=QueryDatabaseArgs,
    ),
}
