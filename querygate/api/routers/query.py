"""
QueryGate Query API Router

Front-end endpoints: natural-language questions and direct read-only SQL.
"""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from querygate.api.dependencies import get_nl_query_service, get_tool_surface, verify_api_key
from querygate.core.logging import get_logger
from querygate.services.conversation import ConversationTurn
from querygate.services.nl_query_service import NaturalLanguageQueryService, NLQueryResult
from querygate.tools.base import ParamValue
from querygate.tools.surface import ToolSurface

logger = get_logger(__name__)

router = APIRouter(tags=["query"], dependencies=[Depends(verify_api_key)])


class NLQueryRequest(BaseModel):
    """Natural-language question with the conversation so far"""
    prompt: str = Field(..., description="The user's question")
    history: list[ConversationTurn] = Field(default_factory=list, description="Earlier turns, oldest first")


class SQLQueryRequest(BaseModel):
    """Direct read-only SQL"""
    sql: str = Field(..., description="SQL SELECT query to execute")
    params: list[ParamValue] | None = Field(None, description="Values for ? placeholders")


@router.post("/natural-language", response_model=NLQueryResult)
async def natural_language_query(
    request: NLQueryRequest,
    service: NaturalLanguageQueryService = Depends(get_nl_query_service),
):
    """
    Answer a question with the tiered generate/execute protocol.

    Guard failures and query failures come back as `success: false` with an
    `error`; only unexpected faults produce an HTTP error.
    """
    try:
        return await service.answer(request.prompt, request.history)
    except Exception as e:
        logger.error(f"Natural language query failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred. Please try again.") from e


@router.post("/sql")
async def sql_query(request: SQLQueryRequest, surface: ToolSurface = Depends(get_tool_surface)):
    """Run SQL through the query_database tool and return its result envelope."""
    arguments: dict = {"sql": request.sql}
    if request.params is not None:
        arguments["params"] = request.params

    result = await asyncio.to_thread(surface.call, "query_database", arguments)
    return result.model_dump(by_alias=True)
