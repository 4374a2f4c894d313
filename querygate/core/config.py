"""
QueryGate Configuration Management
"""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated
from urllib.parse import quote_plus

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_CORE_TABLES = [
    "cases", "services", "assessments", "service_types", "invoices", "receipts",
    "receipt_allocations", "payment_plans", "fees", "persons", "phones", "users",
    "contact_requests", "appointments", "sales_funnels", "campaigns", "court_dates",
    "courts", "judges", "deadlines", "tasks", "sms", "comments", "documents",
    "call_records", "visits", "dropdown_list_items", "dropdown_lists", "offices",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "QueryGate"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", pattern="^(development|staging|production|test)$")
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Database Configuration (MySQL)
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "readonly"
    db_password: str = ""
    db_name: str = "bos"
    db_connection_limit: int = Field(default=10, ge=1, le=200)
    db_ssl: bool = True
    # CA bundle for servers signed by a private CA; the system trust store otherwise
    db_ssl_ca: str | None = None
    db_connect_timeout: int = 10
    # Seconds to wait for a free pooled connection; 0 fails immediately when exhausted
    db_pool_timeout: float = Field(default=0.0, ge=0.0)
    db_pool_recycle: int = 3600

    # SSH tunnel to the database host; when enabled the pool connects through it without TLS
    ssh_enabled: bool = False
    ssh_host: str = ""
    ssh_port: int = 22
    ssh_user: str = ""
    ssh_key_path: str = ""
    ssh_key_passphrase: str | None = None
    ssh_local_port: int = Field(default=13306, ge=0, le=65535)

    # MCP Server
    mcp_server_host: str = "0.0.0.0"
    mcp_server_port: int = 3100
    mcp_server_name: str = "querygate-db-server"
    mcp_server_version: str = "1.0.0"
    # Where the natural-language service sends tool calls: in-process, or over HTTP to mcp_server_url
    tool_transport: str = Field(default="local", pattern="^(local|mcp)$")
    mcp_server_url: str = "http://localhost:3100/mcp"
    session_close_timeout: float = Field(default=5.0, gt=0, description="Grace period (s) for closing sessions on shutdown")
    # Sessions with no request for this long are dropped; 0 keeps them until DELETE
    session_idle_timeout: float = Field(default=1800.0, ge=0)

    # Query Limits
    max_query_rows: int = Field(default=1000, ge=1, le=100000)
    max_query_length: int = Field(default=10000, ge=1)
    query_timeout_ms: int = Field(default=30000, ge=1)

    # Audit
    audit_log_enabled: bool = True
    audit_log_path: str = "./logs/audit.log"

    # Logging
    log_to_file: bool = False
    log_file_path: str = "./logs/querygate.log"
    log_max_bytes: int = Field(default=10_000_000, description="Max log file size in bytes (default 10MB)")
    log_backup_count: int = Field(default=5, description="Number of backup log files to keep")

    # CORS: comma-separated URLs, or "*" to allow all
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:3000"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Front-end API key (X-API-Key). Unset disables the check.
    api_key: str | None = None

    # LLM Configuration
    anthropic_api_key: str | None = None
    llm_model: str = "claude-haiku-4-5-20251001"
    llm_max_tokens: int = Field(default=4096, ge=100, le=32000)

    # Natural-language query orchestration
    max_prompt_length: int = Field(default=2000, ge=1)
    history_max_turns: int = Field(default=10, ge=0)
    history_result_chars: int = Field(default=500, ge=0)
    core_tables: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_CORE_TABLES))
    business_rules_path: str | None = None
    schema_cache_ttl_seconds: float = 300.0
    query_memory_cache_ttl_seconds: float = 300.0

    @field_validator("core_tables", mode="before")
    @classmethod
    def parse_core_tables(cls, v):
        if isinstance(v, str):
            return [table.strip() for table in v.split(",") if table.strip()]
        return v

    @model_validator(mode="after")
    def check_ssh_settings(self) -> Settings:
        if self.ssh_enabled:
            for name in ("ssh_host", "ssh_user", "ssh_key_path"):
                if not getattr(self, name):
                    raise ValueError(f"{name.upper()} is required when SSH_ENABLED=true")
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment == "production"

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the target MySQL database (PyMySQL driver)"""
        return (
            f"mysql+pymysql://{quote_plus(self.db_user)}:{quote_plus(self.db_password)}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}?charset=utf8mb4"
        )

    @property
    def llm_configured(self) -> bool:
        """True when an API key for the language model is present"""
        return bool(self.anthropic_api_key) and self.anthropic_api_key != "your-anthropic-api-key-here"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded once and reused.
    """
    return Settings()


# Global settings instance
settings = get_settings()
