"""
Table schema resources

One `schema://tables/<name>` resource per table in the database.
"""
from __future__ import annotations

import json

from querygate.core.exceptions import ProtocolError
from querygate.core.logging import get_logger
from querygate.database.schema_catalog import SchemaCatalog
from querygate.tools.base import VALID_TABLE_NAME

logger = get_logger(__name__)

RESOURCE_SCHEME = "schema://tables/"
RESOURCE_MIME_TYPE = "application/json"
INVALID_PARAMS = -32602

RESOURCE_TEMPLATE = {
    "uriTemplate": f"{RESOURCE_SCHEME}{{tableName}}",
    "name": "table-schema",
    "mimeType": RESOURCE_MIME_TYPE,
    "description": "Database table schema information",
}


def list_resources(catalog: SchemaCatalog) -> list[dict]:
    """List table schema resources; an introspection failure yields an empty list."""
    try:
        names = catalog.table_names()
    except Exception as e:
        logger.error(f"Failed to list table resources: {e}", exc_info=True)
        return []

    return [
        {
            "uri": f"{RESOURCE_SCHEME}{name}",
            "name": f"{name} schema",
            "mimeType": RESOURCE_MIME_TYPE,
        }
        for name in names
    ]


def read_resource(catalog: SchemaCatalog, uri: str) -> list[dict]:
    """
    Read the schema of the table named in `uri`.

    Raises:
        ProtocolError: Unknown URI scheme or invalid table name (-32602)
    """
    if not uri.startswith(RESOURCE_SCHEME):
        raise ProtocolError(f"Unknown resource: {uri}", code=INVALID_PARAMS)

    table_name = uri[len(RESOURCE_SCHEME):]
    if not VALID_TABLE_NAME.match(table_name):
        raise ProtocolError("Invalid table name", code=INVALID_PARAMS)

    columns, indexes = catalog.describe_table(table_name)
    return [
        {
            "uri": uri,
            "mimeType": RESOURCE_MIME_TYPE,
            "text": json.dumps(
                {
                    "tableName": table_name,
                    "database": catalog.database,
                    "columns": columns.rows,
                    "indexes": indexes.rows,
                },
                default=str,
                indent=2,
            ),
        }
    ]
