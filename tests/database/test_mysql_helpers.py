from __future__ import annotations

from datetime import time, timedelta

import pytest

from src.leave_portal.leave_portal.database import connection
from src.leave_portal.leave_portal.database.bootstrap import _iter_sql_statements
from src.leave_portal.leave_portal.database.connection import DBConfig, DatabaseConnection
from src.leave_portal.leave_portal.database.mysql_base import escape_like, normalize_mysql_time


def test_connections_use_a_utc_session(monkeypatch):
    seen = {}

    def fake_connect(**kwargs):
        seen.update(kwargs)
        return object()

    monkeypatch.setattr(connection.mysql.connector, "connect", fake_connect)

    DatabaseConnection(DBConfig.from_dict({"database": "leave_portal_test"})).connect()

    assert seen["time_zone"] == "+00:00"
    assert seen["autocommit"] is False
    assert seen["database"] == "leave_portal_test"


@pytest.mark.parametrize(
    "text,expected",
    [
        ("budi", "budi"),
        ("100%", "100!%"),
        ("a_b", "a!_b"),
        ("wow!", "wow!!"),
    ],
)
def test_escape_like(text, expected):
    assert escape_like(text) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, None),
        (time(9, 45), time(9, 45)),
        (timedelta(hours=9, minutes=45, seconds=5), time(9, 45, 5)),
        ("07:00:00", time(7, 0)),
        (b"08:30:00", time(8, 30)),
    ],
)
def test_normalize_mysql_time(value, expected):
    assert normalize_mysql_time(value) == expected


def test_normalize_mysql_time_rejects_other_types():
    with pytest.raises(TypeError):
        normalize_mysql_time(945)


def test_sql_splitter_keeps_semicolons_inside_literals():
    script = """
        CREATE TABLE a (id INT);
        INSERT INTO a VALUES (1), (2);
        INSERT INTO notes(body) VALUES ('pulang; sakit'), ("it\\'s; fine");

    """

    assert list(_iter_sql_statements(script)) == [
        "CREATE TABLE a (id INT)",
        "INSERT INTO a VALUES (1), (2)",
        "INSERT INTO notes(body) VALUES ('pulang; sakit'), (\"it\\'s; fine\")",
    ]


def test_sql_splitter_returns_trailing_statement_without_semicolon():
    assert list(_iter_sql_statements("SELECT 1; SELECT 2")) == ["SELECT 1", "SELECT 2"]
