"""
Unit tests for conversation history handling
"""
from querygate.services.conversation import (
    ConversationTurn,
    Exchange,
    build_history,
    build_messages,
    summarize_answer,
    window_history,
)


def turns(*roles):
    return [ConversationTurn(role=role, content=f"{role} {i}") for i, role in enumerate(roles)]


class TestSummarizeAnswer:
    def test_all_parts(self):
        exchange = Exchange(
            prompt="How many cases?",
            ai_message="There are 3.",
            generated_sql="SELECT COUNT(*) FROM cases",
            data="x" * 20,
            error="partial",
        )
        assert summarize_answer(exchange, result_chars=5) == (
            "There are 3.\n[SQL: SELECT COUNT(*) FROM cases]\n[Result: xxxxx]\n[Error: partial]"
        )

    def test_message_only(self):
        assert summarize_answer(Exchange(prompt="hi", ai_message="Hello")) == "Hello"


class TestBuildHistory:
    def test_alternating_turns(self):
        history = build_history([
            Exchange(prompt="q1", ai_message="a1"),
            Exchange(prompt="q2"),
            Exchange(prompt="q3", generated_sql="SELECT 1"),
        ])

        assert [t.role for t in history] == ["user", "assistant", "user", "user", "assistant"]
        assert history[-1].content == "[SQL: SELECT 1]"


class TestWindowHistory:
    def test_keeps_last_turns(self):
        history = turns("user", "assistant", "user", "assistant", "user", "assistant")
        assert [t.content for t in window_history(history, 4)] == ["user 2", "assistant 3", "user 4", "assistant 5"]

    def test_drops_leading_assistant(self):
        history = turns("user", "assistant", "user", "assistant")
        assert [t.content for t in window_history(history, 3)] == ["user 2", "assistant 3"]

    def test_zero_turns(self):
        assert window_history(turns("user"), 0) == []


def test_build_messages_appends_question():
    messages = build_messages("  latest  ", turns("user", "assistant"), 10)
    assert messages == [
        {"role": "user", "content": "user 0"},
        {"role": "assistant", "content": "assistant 1"},
        {"role": "user", "content": "latest"},
    ]
