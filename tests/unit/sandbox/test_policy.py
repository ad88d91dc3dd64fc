"""Unit tests for the read-only statement policy."""

import pytest

from askdb.errors import ErrorCode, StatementNotAllowed
from askdb.sandbox.policy import assert_read_only


class TestAssertReadOnly:
    """Lexical allow-list checks."""

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM users",
            "  select id from orders where status = 'open'",
            "SELECT updated_at, created_by FROM audit_log",
            "SELECT deleted_flag FROM accounts",
            "SELECT * FROM information_schema.tables WHERE table_schema = 'public'",
        ],
    )
    def test_allows_select(self, sql):
        assert_read_only(sql)

    @pytest.mark.parametrize(
        "sql",
        [
            "",
            "SHOW TABLES",
            "WITH x AS (SELECT 1) SELECT * FROM x",
            "EXPLAIN SELECT 1",
            "INSERT INTO t VALUES (1)",
        ],
    )
    def test_rejects_non_select_start(self, sql):
        with pytest.raises(StatementNotAllowed) as exc_info:
            assert_read_only(sql)
        assert exc_info.value.code == ErrorCode.STATEMENT_NOT_ALLOWED
        assert exc_info.value.keyword is None

    @pytest.mark.parametrize(
        ("sql", "keyword"),
        [
            ("SELECT 1; DROP TABLE users", "drop"),
            ("SELECT * FROM t; delete from t", "delete"),
            ("select 1 union select 2; TRUNCATE t", "truncate"),
            ("SELECT * FROM t WHERE x = 1; GRANT ALL ON t TO bob", "grant"),
        ],
    )
    def test_rejects_forbidden_keyword(self, sql, keyword):
        with pytest.raises(StatementNotAllowed) as exc_info:
            assert_read_only(sql)
        assert exc_info.value.keyword == keyword
        assert keyword.upper() in exc_info.value.message

    def test_keyword_inside_identifier_is_allowed(self):
        assert_read_only("SELECT last_update, createdate FROM droplets")
