"""
SQLite-backed key store.

Encrypted records live in a ``key_records`` table keyed by alias, stored
in the portable JSON form of StoredKeyRecord. Unlocked sessions are never
written to the database; they stay in the in-memory cache inherited from
KeyStore and vanish with the process.

Invariants:
    - One row per alias; store replaces the whole row.
    - The row holds no plaintext private key.
    - A row that fails to parse is reported as a corrupted record
      (lookups return None).
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from convex_client.config import DEFAULT_PBKDF2_ITERATIONS
from convex_client.keystore import KeyStore, StoredKeyRecord

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS key_records (
    alias TEXT PRIMARY KEY,
    record_json TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S+00:00")


class SqliteKeyStore(KeyStore):
    """Durable key store.

    Args:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.
        iterations: PBKDF2 iteration count for newly stored records.

    Example:
        store = SqliteKeyStore("keys.db")
        store.store_key_pair("alice", KeyPair.generate(), "pw")
        kp = store.unlock("alice", "pw")
    """

    def __init__(
        self,
        db_path: str | Path = ":memory:",
        iterations: int = DEFAULT_PBKDF2_ITERATIONS,
    ) -> None:
        super().__init__(iterations)
        self._db_path = str(db_path)

        if self._db_path == ":memory:":
            self._persistent_conn: sqlite3.Connection | None = sqlite3.connect(
                ":memory:", check_same_thread=False
            )
        else:
            self._persistent_conn = None

        with self._transaction() as conn:
            conn.executescript(_SCHEMA)

    def _get_conn(self) -> sqlite3.Connection:
        if self._persistent_conn is not None:
            return self._persistent_conn
        conn = sqlite3.connect(self._db_path)
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if self._persistent_conn is None:
                conn.close()

    def _put_record(self, alias: str, record: StoredKeyRecord) -> None:
        with self._transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO key_records (alias, record_json, updated_at) "
                "VALUES (?, ?, ?)",
                (alias, json.dumps(record.to_dict(), sort_keys=True), _now()),
            )

    def _get_record(self, alias: str) -> StoredKeyRecord | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT record_json FROM key_records WHERE alias = ?", (alias,)
            ).fetchone()
        if row is None:
            return None
        try:
            data = json.loads(row[0])
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid key record: {e}") from e
        if not isinstance(data, dict):
            raise ValueError("Invalid key record: not a JSON object")
        return StoredKeyRecord.from_dict(data)

    def _delete_record(self, alias: str) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM key_records WHERE alias = ?", (alias,))

    def _record_aliases(self) -> list[str]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT alias FROM key_records ORDER BY alias").fetchall()
        return [row[0] for row in rows]

    def close(self) -> None:
        """Close the in-memory connection, if any."""
        if self._persistent_conn is not None:
            self._persistent_conn.close()
            self._persistent_conn = None
