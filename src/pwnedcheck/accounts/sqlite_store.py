"""
SQLite reference implementation of the account store.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import os
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from pwnedcheck.accounts.base import (
    AccountIdentity,
    AccountStore,
    AccountStoreError,
    normalize_username,
)
from pwnedcheck.config import PwnedCheckConfig


class SQLiteAccountStore(AccountStore):
    """SQLite-based account storage."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path = ":memory:"):
        """Initialize SQLite account store.

        Args:
            db_path: Database file, or ":memory:" for a private in-memory store
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @classmethod
    def from_config(cls, config: PwnedCheckConfig) -> "SQLiteAccountStore":
        """Create a store at the configured database path."""
        return cls(config.get_db_path())

    def initialize(self) -> None:
        """Open the database and create tables."""
        if str(self.db_path) != ":memory:":
            path = Path(self.db_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(path), check_same_thread=False)
            os.chmod(path, 0o600)
        else:
            self._conn = sqlite3.connect(":memory:", check_same_thread=False)

        self._conn.row_factory = sqlite3.Row
        self._create_tables()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SQLiteAccountStore":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise AccountStoreError("Account store not initialized")
        return self._conn

    def _create_tables(self) -> None:
        """Create database tables."""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                user_id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL,
                username_clean TEXT UNIQUE NOT NULL,
                password_hash TEXT,
                password_change_required INTEGER DEFAULT 0,
                password_changed_at TEXT,
                created_at TEXT
            )
        """)

        cursor.execute(
            "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
            (self.SCHEMA_VERSION,),
        )
        self.conn.commit()

    # Account lookups
    def _find_by_clean_username(self, username_clean: str) -> AccountIdentity | None:
        """Find an account by normalized username."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT user_id, password_hash FROM users WHERE username_clean = ? LIMIT 1",
            (username_clean,),
        )
        row = cursor.fetchone()
        if not row:
            return None
        return AccountIdentity(
            user_id=int(row["user_id"]),
            stored_credential_hash=row["password_hash"],
        )

    def get_password_hash(self, user_id: int) -> str | None:
        """Get the stored password hash for an account."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT password_hash FROM users WHERE user_id = ?", (int(user_id),))
        row = cursor.fetchone()
        if not row:
            return None
        return row["password_hash"]

    def mark_rotation_required(self, user_id: int) -> bool:
        """Set the password-change-required flag on one account."""
        cursor = self.conn.cursor()
        try:
            cursor.execute(
                "UPDATE users SET password_change_required = 1 WHERE user_id = ?",
                (int(user_id),),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise AccountStoreError(f"Rotation update failed: {e}") from e
        return cursor.rowcount > 0

    def requires_rotation(self, user_id: int) -> bool:
        """Whether the account must change its password at next login."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT password_change_required FROM users WHERE user_id = ?",
            (int(user_id),),
        )
        row = cursor.fetchone()
        return bool(row and row["password_change_required"])

    # Account management
    def create_account(self, username: str, password_hash: str | None) -> int:
        """Create a new account.

        Raises:
            AccountStoreError: If the normalized username is taken
        """
        now = datetime.now().isoformat()
        cursor = self.conn.cursor()
        try:
            cursor.execute("""
                INSERT INTO users (
                    username, username_clean, password_hash,
                    password_change_required, password_changed_at, created_at
                ) VALUES (?, ?, ?, 0, ?, ?)
            """, (
                username,
                normalize_username(username),
                password_hash,
                now if password_hash else None,
                now,
            ))
        except sqlite3.IntegrityError as e:
            raise AccountStoreError(f"Username already exists: {username}") from e
        self.conn.commit()
        return int(cursor.lastrowid)

    def set_password_hash(self, user_id: int, password_hash: str) -> bool:
        """Replace an account's password hash and clear the rotation flag."""
        cursor = self.conn.cursor()
        cursor.execute("""
            UPDATE users SET
                password_hash = ?, password_change_required = 0, password_changed_at = ?
            WHERE user_id = ?
        """, (password_hash, datetime.now().isoformat(), int(user_id)))
        self.conn.commit()
        return cursor.rowcount > 0

    def list_accounts(self) -> Iterator[dict[str, Any]]:
        """List accounts (excludes password hashes)."""
        cursor = self.conn.cursor()
        cursor.execute("""
            SELECT user_id, username, password_change_required, password_changed_at, created_at
            FROM users ORDER BY user_id
        """)
        for row in cursor.fetchall():
            yield {
                "user_id": row["user_id"],
                "username": row["username"],
                "password_change_required": bool(row["password_change_required"]),
                "password_changed_at": row["password_changed_at"],
                "created_at": row["created_at"],
            }
