"""
Core Package

Application configuration, logging, and core utilities.

Modules:
- config: Settings management (Pydantic)
- logging: Logging setup, audit and LLM loggers
- prompts: Tiered system prompt templates and business rules
- exceptions: Custom exception classes
"""

from querygate.core.config import get_settings, settings
from querygate.core.logging import get_audit_logger, get_llm_logger, get_logger, setup_logging

__all__ = [
    "get_settings",
    "settings",
    "get_audit_logger",
    "get_llm_logger",
    "get_logger",
    "setup_logging",
]
