"""
Database tools exposed to chat and model callers.

Modules:
- base: ToolResult envelope, argument models, tool definitions
- list_tables / describe_table / query_database: tool handlers
- resources: schema://tables/<name> resources
- surface: ToolSurface dispatcher
"""
