import logging
import sqlite3
import typing as t
from pathlib import Path

from .. import config

logger = logging.getLogger(__name__)

USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    first_name VARCHAR(100) NOT NULL,
    last_name VARCHAR(100) NOT NULL,
    email VARCHAR(255) NOT NULL UNIQUE,
    bio TEXT,
    is_active BOOLEAN NOT NULL DEFAULT 1,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
)
"""


def get_conn() -> sqlite3.Connection:
    """
    SQLite connection with dict-friendly rows. The parent directory is created
    on demand; ':memory:' is passed through untouched.
    """
    path = config.DATABASE_PATH
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def init_schema() -> None:
    conn = get_conn()
    try:
        with conn:
            conn.execute(USERS_DDL)
    finally:
        conn.close()
    logger.info("DB schema ready - path=%s", config.DATABASE_PATH)


def _describe_table_sqlite(table: str) -> dict[str, str]:
    """
    Return {column_name: TYPE_CATEGORY}, where TYPE_CATEGORY in
    {"TEXT","NUMBER","BOOLEAN","TIMESTAMP","OTHER"}.
    """
    conn = get_conn()
    try:
        # PRAGMA arguments cannot be bound; the name comes from the entities file
        rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    finally:
        conn.close()

    def bucket(dtype: str) -> str:
        u = dtype.upper()
        if "BOOL" in u: return "BOOLEAN"
        if any(x in u for x in ("TIMESTAMP", "DATE", "TIME")): return "TIMESTAMP"
        if any(x in u for x in ("CHAR", "TEXT", "CLOB")): return "TEXT"
        if any(x in u for x in ("INT", "REAL", "NUM", "DEC", "FLOA", "DOUB")): return "NUMBER"
        return "OTHER"

    return {row["name"]: bucket(row["type"] or "") for row in rows}


def _execute_query_with_conn(sql: str, params) -> tuple[list[str], list[sqlite3.Row]]:
    conn = get_conn()
    try:
        cur = conn.execute(sql, params)
        cols = [d[0] for d in cur.description] if cur.description else []
        rows = cur.fetchall() if cur.description else []
        return cols, rows
    finally:
        conn.close()


def _execute_write(sql: str, params: t.Union[t.Sequence[t.Any], t.Mapping[str, t.Any]]) -> int:
    """
    Run one INSERT/UPDATE/DELETE in its own transaction; returns the row count.
    """
    conn = get_conn()
    try:
        with conn:
            cur = conn.execute(sql, params)
        return cur.rowcount
    finally:
        conn.close()
