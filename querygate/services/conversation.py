"""
Conversation History

Turns sent to the language model alongside the current question. Prior
assistant answers are summarised as text so the model sees what it said,
which SQL ran and a slice of what came back.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel

from querygate.core.config import settings


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


@dataclass
class Exchange:
    """One completed question/answer pair as shown in the chat."""

    prompt: str
    ai_message: str | None = None
    generated_sql: str | None = None
    data: str | None = None
    error: str | None = None


def summarize_answer(exchange: Exchange, result_chars: int | None = None) -> str:
    """
    Render an assistant answer as one text block.

    Format: message, `[SQL: ...]`, `[Result: <first N chars>]`, `[Error: ...]`,
    each part on its own line and only when present.
    """
    result_chars = settings.history_result_chars if result_chars is None else result_chars

    parts: list[str] = []
    if exchange.ai_message:
        parts.append(exchange.ai_message)
    if exchange.generated_sql:
        parts.append(f"[SQL: {exchange.generated_sql}]")
    if exchange.data:
        parts.append(f"[Result: {exchange.data[:result_chars]}]")
    if exchange.error:
        parts.append(f"[Error: {exchange.error}]")
    return "\n".join(parts)


def build_history(exchanges: list[Exchange], result_chars: int | None = None) -> list[ConversationTurn]:
    """Flatten completed exchanges into alternating user/assistant turns."""
    turns: list[ConversationTurn] = []
    for exchange in exchanges:
        turns.append(ConversationTurn(role="user", content=exchange.prompt))
        answer = summarize_answer(exchange, result_chars)
        if answer:
            turns.append(ConversationTurn(role="assistant", content=answer))
    return turns


def window_history(history: list[ConversationTurn], max_turns: int | None = None) -> list[ConversationTurn]:
    """
    Keep the most recent `max_turns` turns.

    A window that would open on an assistant turn drops it, since the model
    expects the conversation to start with the user.
    """
    max_turns = settings.history_max_turns if max_turns is None else max_turns
    if max_turns <= 0:
        return []

    recent = list(history[-max_turns:])
    while recent and recent[0].role == "assistant":
        recent.pop(0)
    return recent


def build_messages(prompt: str, history: list[ConversationTurn], max_turns: int | None = None) -> list[dict[str, str]]:
    """Windowed history plus the current question, in API message format."""
    messages = [turn.model_dump() for turn in window_history(history, max_turns)]
    messages.append({"role": "user", "content": prompt.strip()})
    return messages
