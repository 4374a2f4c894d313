"""
Unit tests for model response parsing
"""
from querygate.utils.response_parser import (
    clean_generated_sql,
    comment_text,
    is_comment_only,
    parse_ai_response,
)


class TestParseAiResponse:
    """Test <message>/<sql> extraction"""

    def test_message_and_sql(self):
        parsed = parse_ai_response("<message>Here are the cases</message>\n<sql>SELECT * FROM cases</sql>")
        assert parsed.message == "Here are the cases"
        assert parsed.sql == "SELECT * FROM cases"

    def test_tags_are_case_insensitive_and_trimmed(self):
        parsed = parse_ai_response("<MESSAGE>  Which year?  </MESSAGE>")
        assert parsed.message == "Which year?"
        assert parsed.sql is None

    def test_first_occurrence_wins(self):
        parsed = parse_ai_response("<sql>SELECT 1</sql><sql>SELECT 2</sql>")
        assert parsed.sql == "SELECT 1"

    def test_multiline_sql(self):
        parsed = parse_ai_response("<message>ok</message><sql>\nSELECT id\nFROM cases\n</sql>")
        assert parsed.sql == "SELECT id\nFROM cases"

    def test_untagged_text_becomes_sql(self):
        parsed = parse_ai_response("SELECT COUNT(*) FROM cases")
        assert parsed.message is None
        assert parsed.sql == "SELECT COUNT(*) FROM cases"

    def test_empty_text(self):
        parsed = parse_ai_response("")
        assert parsed.message is None
        assert parsed.sql is None


class TestCleanGeneratedSql:
    def test_code_fence_and_semicolon(self):
        assert clean_generated_sql("```sql\nSELECT 1;\n```") == "SELECT 1"

    def test_bare_fence(self):
        assert clean_generated_sql("```\nSELECT 1\n```") == "SELECT 1"

    def test_single_trailing_semicolon(self):
        assert clean_generated_sql("SELECT 1;") == "SELECT 1"

    def test_unchanged(self):
        assert clean_generated_sql("SELECT 1") == "SELECT 1"


class TestCommentOnly:
    def test_comment_lines_only(self):
        assert is_comment_only("-- I need the year\n-- to answer this") is True

    def test_comment_plus_sql(self):
        assert is_comment_only("-- count\nSELECT COUNT(*) FROM cases") is False

    def test_comment_text_joins_bodies(self):
        assert comment_text("-- I need the year\n--\n-- to answer this") == "I need the year to answer this"
