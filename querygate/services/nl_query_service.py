"""
Natural Language Query Service

Answers a user question with a two-tier generate -> validate -> execute
protocol:

- Tier 1 sends the core schema (the tables most questions need). The model
  may answer with SQL, with text only, or ask for the full schema.
- Tier 2 runs only when Tier 1 asked for the full schema or its SQL failed
  at the tool layer. It sends the complete schema plus what went wrong.

There is at most one escalation per question. Non-SELECT SQL from the model
ends the turn immediately and is never retried.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from querygate.core.config import settings
from querygate.core.exceptions import LLMError
from querygate.core.logging import get_llm_logger, get_logger
from querygate.core.prompts import (
    BUSINESS_RULES,
    NEED_FULL_SCHEMA_PATTERN,
    build_tier1_prompt,
    build_tier2_prompt,
)
from querygate.services.conversation import ConversationTurn, build_messages
from querygate.services.llm_service import LanguageModel
from querygate.services.query_memory import QueryMemory
from querygate.services.tool_client import ToolClient
from querygate.utils.response_parser import (
    ParsedResponse,
    clean_generated_sql,
    comment_text,
    is_comment_only,
    parse_ai_response,
)
from querygate.utils.sql_parser import strip_comments
from querygate.utils.sql_validator import first_keyword

logger = get_logger(__name__)
llm_logger = get_llm_logger()

EMPTY_PROMPT = "Please enter a question"
NOT_CONFIGURED = "AI service is not configured"
NO_RESPONSE = "AI could not generate a response"
SELECT_ONLY = "Only SELECT queries are permitted for safety"
LLM_FAILED = "AI service request failed. Please try again."
SCHEMA_UNAVAILABLE = "Database connection failed. Please try again later."
RETRY_FAILED = "Query failed after retry"


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    TEXT_ONLY = "text_only"
    ESCALATE = "escalate"
    NON_RETRYABLE = "non_retryable"
    FAILURE = "failure"


@dataclass
class GenerationAttempt:
    """One model call and what came of it."""

    tier: int
    system_prompt: str
    messages: list[dict[str, str]]
    parsed: ParsedResponse | None = None
    sql: str | None = None
    outcome: AttemptOutcome = AttemptOutcome.FAILURE
    data: str | None = None
    error: str | None = None
    elapsed_ms: int = 0
    timings: dict[str, int] = field(default_factory=dict)

    @property
    def message(self) -> str | None:
        return self.parsed.message if self.parsed else None


class NLQueryResult(BaseModel):
    success: bool
    data: str | None = None
    generated_sql: str | None = None
    ai_message: str | None = None
    error: str | None = None
    tier: int | None = None


class SchemaProvider(Protocol):
    """Compact schema text source (see SchemaCatalog)"""

    def core_schema(self) -> str: ...

    def full_schema(self) -> str: ...


def load_business_rules(path: str | None = None) -> str:
    """Business rules document from `path` (or settings), falling back to the built-in rules."""
    path = path or settings.business_rules_path
    if not path:
        return BUSINESS_RULES
    rules_file = Path(path)
    if not rules_file.is_file():
        logger.warning(f"Business rules file not found: {path}, using built-in rules")
        return BUSINESS_RULES
    return rules_file.read_text(encoding="utf-8")


class NaturalLanguageQueryService:
    """Tiered natural-language query orchestrator."""

    def __init__(
        self,
        llm: LanguageModel,
        tool_client: ToolClient,
        schema: SchemaProvider,
        query_memory: QueryMemory | None = None,
        business_rules: str | None = None,
        max_prompt_length: int | None = None,
        history_max_turns: int | None = None,
        max_rows: int | None = None,
    ):
        self.llm = llm
        self.tool_client = tool_client
        self.schema = schema
        self.query_memory = query_memory or QueryMemory()
        self.business_rules = business_rules if business_rules is not None else load_business_rules()
        self.max_prompt_length = max_prompt_length or settings.max_prompt_length
        self.history_max_turns = settings.history_max_turns if history_max_turns is None else history_max_turns
        self.max_rows = max_rows or settings.max_query_rows

    async def answer(self, prompt: str, history: list[ConversationTurn] | None = None) -> NLQueryResult:
        """
        Answer one user question.

        Args:
            prompt: The user's question
            history: Earlier turns of the conversation (windowed to the last N)

        Returns:
            NLQueryResult with data, SQL, the model's message and the tier that answered
        """
        question = (prompt or "").strip()
        if not question:
            return NLQueryResult(success=False, error=EMPTY_PROMPT)
        if len(question) > self.max_prompt_length:
            return NLQueryResult(
                success=False, error=f"Question is too long (max {self.max_prompt_length} characters)"
            )
        if not self.llm.is_configured:
            return NLQueryResult(success=False, error=NOT_CONFIGURED)

        messages = build_messages(question, history or [], self.history_max_turns)
        query_memory = self.query_memory.summary()

        try:
            core_schema = await asyncio.to_thread(self.schema.core_schema)
        except Exception as e:
            logger.error(f"Failed to load core schema: {e}", exc_info=True)
            return NLQueryResult(success=False, error=SCHEMA_UNAVAILABLE)

        start = time.perf_counter()
        logger.info(f"Starting Tier 1 (core schema) with {len(messages)} messages")
        tier1 = await self._attempt(
            1,
            build_tier1_prompt(core_schema, self.business_rules, query_memory, self.max_rows),
            messages,
        )
        logger.info(f"Tier 1 completed: {tier1.outcome.value} in {tier1.elapsed_ms}ms")

        if tier1.outcome != AttemptOutcome.ESCALATE:
            return self._to_result(tier1)

        reason = tier1.error or tier1.message
        logger.info(f"Tier 1 fallback to Tier 2: {reason}")

        try:
            full_schema = await asyncio.to_thread(self.schema.full_schema)
        except Exception as e:
            logger.error(f"Failed to load full schema: {e}", exc_info=True)
            return NLQueryResult(
                success=False, error=SCHEMA_UNAVAILABLE, generated_sql=tier1.sql, ai_message=tier1.message, tier=1
            )

        tier2 = await self._attempt(
            2,
            build_tier2_prompt(
                full_schema,
                self.business_rules,
                query_memory,
                self.max_rows,
                failed_sql=tier1.sql,
                error_message=tier1.error or tier1.message,
            ),
            messages,
        )
        total_ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"Tier 2 completed: {tier2.outcome.value} in {tier2.elapsed_ms}ms (total: {total_ms}ms)")

        return self._to_result(tier2)

    async def _attempt(self, tier: int, system_prompt: str, messages: list[dict[str, str]]) -> GenerationAttempt:
        attempt = GenerationAttempt(tier=tier, system_prompt=system_prompt, messages=messages)
        start = time.perf_counter()
        try:
            await self._run_attempt(attempt)
        finally:
            attempt.elapsed_ms = int((time.perf_counter() - start) * 1000)
        return attempt

    async def _run_attempt(self, attempt: GenerationAttempt) -> None:
        t0 = time.perf_counter()
        try:
            raw = await self.llm.generate(attempt.system_prompt, attempt.messages)
        except LLMError as e:
            logger.error(f"Tier {attempt.tier} model call failed: {e}")
            attempt.outcome = AttemptOutcome.NON_RETRYABLE
            attempt.error = LLM_FAILED
            return
        attempt.timings["llm_ms"] = int((time.perf_counter() - t0) * 1000)

        raw = (raw or "").strip()
        if not raw:
            attempt.outcome = AttemptOutcome.NON_RETRYABLE
            attempt.error = NO_RESPONSE
            return

        attempt.parsed = parse_ai_response(raw)
        sql = attempt.parsed.sql

        if not sql:
            if attempt.message and NEED_FULL_SCHEMA_PATTERN.search(attempt.message):
                if attempt.tier == 1:
                    attempt.outcome = AttemptOutcome.ESCALATE
                else:
                    attempt.outcome = AttemptOutcome.FAILURE
                    attempt.error = attempt.message
                return
            attempt.outcome = AttemptOutcome.TEXT_ONLY
            return

        sql = clean_generated_sql(sql)
        if is_comment_only(sql):
            # Model explained itself in SQL comments instead of a message
            attempt.outcome = AttemptOutcome.TEXT_ONLY
            if not attempt.message:
                attempt.parsed = ParsedResponse(message=comment_text(sql) or None, sql=None)
            return

        attempt.sql = sql
        if first_keyword(strip_comments(sql)) not in ("SELECT", "WITH"):
            attempt.outcome = AttemptOutcome.NON_RETRYABLE
            attempt.error = SELECT_ONLY
            return

        llm_logger.info(f"Tier {attempt.tier} generated SQL: {sql}")

        t1 = time.perf_counter()
        result = await self.tool_client.call_tool("query_database", {"sql": sql})
        attempt.timings["tool_ms"] = int((time.perf_counter() - t1) * 1000)

        text = "\n".join(item.text for item in result.content)
        if result.is_error:
            attempt.error = text
            attempt.outcome = AttemptOutcome.ESCALATE if attempt.tier == 1 else AttemptOutcome.FAILURE
            return

        attempt.data = text
        attempt.outcome = AttemptOutcome.SUCCESS

    @staticmethod
    def _to_result(attempt: GenerationAttempt) -> NLQueryResult:
        if attempt.outcome == AttemptOutcome.SUCCESS:
            return NLQueryResult(
                success=True,
                data=attempt.data,
                generated_sql=attempt.sql,
                ai_message=attempt.message,
                tier=attempt.tier,
            )
        if attempt.outcome == AttemptOutcome.TEXT_ONLY:
            return NLQueryResult(success=True, ai_message=attempt.message, tier=attempt.tier)

        return NLQueryResult(
            success=False,
            error=attempt.error or attempt.message or RETRY_FAILED,
            generated_sql=attempt.sql,
            ai_message=attempt.message,
            tier=attempt.tier,
        )
