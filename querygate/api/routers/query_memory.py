"""
QueryGate Query Memory Router

Remember, list and forget verified queries used as prompt enrichment.
"""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from querygate.api.dependencies import get_query_memory, verify_api_key
from querygate.services.query_memory import QueryMemory, RememberedQuery

router = APIRouter(tags=["query-memory"], dependencies=[Depends(verify_api_key)])


class RememberRequest(BaseModel):
    natural_language: str = Field(..., min_length=1)
    generated_sql: str = Field(..., min_length=1)
    tier: int = Field(1, ge=1, le=2)
    remembered_by: str | None = None


class RememberedQueryResponse(BaseModel):
    id: str
    natural_language: str
    generated_sql: str
    tables: list[str]
    joins: list[str]
    category: str
    tier: int
    remembered_by: str | None = None
    created_at: datetime

    @classmethod
    def from_query(cls, query: RememberedQuery) -> RememberedQueryResponse:
        return cls(**vars(query))


@router.post("", response_model=RememberedQueryResponse)
async def remember_query(request: RememberRequest, memory: QueryMemory = Depends(get_query_memory)):
    """Remember a verified query (identical SQL is stored once)."""
    query = memory.remember(request.natural_language, request.generated_sql, request.tier, request.remembered_by)
    return RememberedQueryResponse.from_query(query)


@router.get("", response_model=list[RememberedQueryResponse])
async def list_remembered_queries(memory: QueryMemory = Depends(get_query_memory)):
    """All remembered queries, most recent first."""
    return [RememberedQueryResponse.from_query(q) for q in memory.list_queries()]


@router.delete("/{query_id}")
async def forget_query(query_id: str, memory: QueryMemory = Depends(get_query_memory)):
    if not memory.forget(query_id):
        raise HTTPException(status_code=404, detail="Query not found")
    return {"success": True}
