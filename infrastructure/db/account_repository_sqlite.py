from __future__ import annotations

import sqlite3
from typing import List, Optional

from domain.errors import StoreUnavailableError
from domain.models import Account
from domain.repositories import AccountRepository

_COLUMNS = "id, display_name, linked_identity, pending_code"


class SqliteAccountRepository(AccountRepository):
    """
    SQLite-backed implementation of `AccountRepository`.

    Manages the `accounts` table, which holds one row per game player and
    the Discord identity linked to it. It is self-initialising: the table
    is created if needed.
    """

    def __init__(self, db_path: str, timeout: float = 5.0) -> None:
        self._db_path = db_path
        self._timeout = timeout
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self._db_path, timeout=self._timeout)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc

    def _ensure_table(self) -> None:
        conn = self._get_connection()
        try:
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS accounts (
                        id TEXT PRIMARY KEY,
                        display_name TEXT NOT NULL,
                        linked_identity TEXT NULL,
                        pending_code TEXT NULL
                    )
                    """
                )
        except sqlite3.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            conn.close()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Account:
        return Account(
            id=str(row[0]),
            display_name=row[1],
            linked_identity=row[2],
            pending_code=row[3],
        )

    def _select(self, where: str, params: tuple) -> List[Account]:
        conn = self._get_connection()
        try:
            cur = conn.cursor()
            cur.execute(
                f"SELECT {_COLUMNS} FROM accounts WHERE {where} ORDER BY id",
                params,
            )
            return [self._to_domain(row) for row in cur.fetchall()]
        except sqlite3.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            conn.close()

    def get_by_id(self, account_id: str) -> Optional[Account]:
        rows = self._select("id = ?", (account_id,))
        return rows[0] if rows else None

    def create_account(self, account: Account) -> None:
        conn = self._get_connection()
        try:
            with conn:
                conn.execute(
                    f"INSERT INTO accounts ({_COLUMNS}) VALUES (?, ?, ?, ?)",
                    (
                        account.id,
                        account.display_name,
                        account.linked_identity,
                        account.pending_code,
                    ),
                )
        except sqlite3.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            conn.close()

    def find_by_linked_identity(self, identity: str) -> List[Account]:
        return self._select("linked_identity = ?", (identity,))

    def find_unlinked_by_code(self, code: str) -> List[Account]:
        return self._select(
            "pending_code = ? AND linked_identity IS NULL",
            (code,),
        )

    def link_account(self, account_id: str, identity: str) -> bool:
        conn = self._get_connection()
        try:
            # Take the write lock up front so concurrent linkers wait on
            # the busy timeout instead of failing a lock upgrade.
            conn.execute("BEGIN IMMEDIATE")
            cur = conn.execute(
                """
                UPDATE accounts
                SET linked_identity = ?, pending_code = NULL
                WHERE id = ?
                  AND linked_identity IS NULL
                  AND NOT EXISTS (
                      SELECT 1 FROM accounts WHERE linked_identity = ?
                  )
                """,
                (identity, account_id, identity),
            )
            updated = cur.rowcount == 1
            conn.commit()
            return updated
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            conn.close()
