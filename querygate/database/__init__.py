"""
Database layer: connection pool, query executor and schema introspection.
"""

from querygate.database.connection import ConnectionPool
from querygate.database.query_executor import QueryExecutor, QueryResult
from querygate.database.schema_catalog import SchemaCatalog

__all__ = ["ConnectionPool", "QueryExecutor", "QueryResult", "SchemaCatalog"]
