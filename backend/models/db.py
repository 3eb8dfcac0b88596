from __future__ import annotations

import json
import os
import sqlite3
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence
from contextlib import contextmanager


DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DATA_DIR.mkdir(parents=True, exist_ok=True)

DEFAULT_DB_PATH = DATA_DIR / "hackathons.db"

_DB_PATH: Path = Path(os.getenv("HACKATHON_DB_PATH", str(DEFAULT_DB_PATH)))


def set_db_path(path: Path | str) -> None:
    global _DB_PATH
    _DB_PATH = Path(path)
    _DB_PATH.parent.mkdir(parents=True, exist_ok=True)


def get_db_path() -> Path:
    return _DB_PATH


def _connect(path: Optional[Path] = None) -> sqlite3.Connection:
    target = Path(path) if path else get_db_path()
    conn = sqlite3.connect(target, check_same_thread=False, timeout=10.0)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextmanager
def get_connection(path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    conn = _connect(path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def transaction(path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    """Open an IMMEDIATE transaction: the write lock is taken before the first read.

    Read-modify-write sequences run inside one are atomic with respect to other
    connections.
    """
    conn = _connect(path)
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.execute("COMMIT")
    except Exception:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    finally:
        conn.close()


def _ensure_schema_migrations_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            applied_at TEXT NOT NULL DEFAULT (datetime('now'))
        );
        """
    )


def _get_applied_versions(conn: sqlite3.Connection) -> set[str]:
    _ensure_schema_migrations_table(conn)
    cur = conn.execute("SELECT version FROM schema_migrations")
    return {row[0] for row in cur.fetchall()}


def _record_applied(conn: sqlite3.Connection, version: str) -> None:
    conn.execute("INSERT OR IGNORE INTO schema_migrations(version) VALUES (?)", (version,))


def _migration_files() -> Sequence[Path]:
    migrations_dir = Path(__file__).resolve().parents[1] / "migrations"
    migrations_dir.mkdir(parents=True, exist_ok=True)
    files = sorted([p for p in migrations_dir.iterdir() if p.suffix == ".sql"])
    return files


def run_migrations(path: Optional[Path] = None) -> None:
    """Run pending SQL migrations found in backend/migrations/*.sql in sorted order."""
    with get_connection(path) as conn:
        applied = _get_applied_versions(conn)
        for sql_file in _migration_files():
            version = sql_file.stem
            if version in applied:
                continue
            sql = sql_file.read_text(encoding="utf-8")
            try:
                conn.executescript(sql)
            except sqlite3.OperationalError as e:
                # Re-running an ALTER that already landed is fine
                if "duplicate column name" not in str(e).lower():
                    raise
            _record_applied(conn, version)


def init_db(path: Optional[Path] = None) -> None:
    """Initialize database by running migrations. Safe to call multiple times."""
    run_migrations(path)


# --- Key/value store ---

def get_value(key: str, conn: Optional[sqlite3.Connection] = None) -> Optional[str]:
    if conn is not None:
        row = conn.execute("SELECT value FROM app_store WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None
    with get_connection() as c:
        return get_value(key, c)


def set_value(key: str, value: str, conn: Optional[sqlite3.Connection] = None) -> None:
    if conn is not None:
        conn.execute(
            "INSERT INTO app_store(key, value) VALUES(?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=datetime('now')",
            (key, value),
        )
        return
    with get_connection() as c:
        set_value(key, value, c)


def delete_value(key: str, conn: Optional[sqlite3.Connection] = None) -> bool:
    if conn is not None:
        cur = conn.execute("DELETE FROM app_store WHERE key = ?", (key,))
        return cur.rowcount > 0
    with get_connection() as c:
        return delete_value(key, c)


def list_keys(prefix: str = "", conn: Optional[sqlite3.Connection] = None) -> list[str]:
    if conn is not None:
        cur = conn.execute(
            "SELECT key FROM app_store WHERE key LIKE ? ORDER BY key ASC", (prefix + "%",)
        )
        return [r[0] for r in cur.fetchall()]
    with get_connection() as c:
        return list_keys(prefix, c)


def get_json(key: str, default: Any = None, conn: Optional[sqlite3.Connection] = None) -> Any:
    raw = get_value(key, conn)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return default


def set_json(key: str, value: Any, conn: Optional[sqlite3.Connection] = None) -> None:
    set_value(key, json.dumps(value), conn)
