from __future__ import annotations

from typing import List, Optional

import psycopg2
from psycopg2 import errors as pg_errors

from domain.errors import StoreUnavailableError
from domain.models import Account
from domain.repositories import AccountRepository

_COLUMNS = "id, display_name, linked_identity, pending_code"


class PostgresAccountRepository(AccountRepository):
    """
    Postgres-backed implementation of `AccountRepository`.

    Uses the same `accounts` table layout as the SQLite repository. Every
    call opens its own connection, so an outage surfaces per request as
    `StoreUnavailableError` rather than as a dead shared session.
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_table()

    def _get_connection(self):
        try:
            return psycopg2.connect(**self._db_params)
        except psycopg2.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc

    def _ensure_table(self) -> None:
        """
        Ensure that the `accounts` table and its link index exist.

        Column sizes match what the game server writes:
          - id VARCHAR(36)            -- player UUID
          - display_name VARCHAR(32)
          - linked_identity VARCHAR(100)
          - pending_code VARCHAR(8)

        The partial unique index keeps a Discord identity on at most one
        account even when concurrent link updates on different rows both
        pass the `NOT EXISTS` guard under READ COMMITTED.
        """

        conn = self._get_connection()
        try:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        CREATE TABLE IF NOT EXISTS accounts (
                            id VARCHAR(36) PRIMARY KEY,
                            display_name VARCHAR(32) NOT NULL,
                            linked_identity VARCHAR(100) NULL,
                            pending_code VARCHAR(8) NULL
                        )
                        """
                    )
                    cur.execute(
                        """
                        CREATE UNIQUE INDEX IF NOT EXISTS accounts_linked_identity_key
                        ON accounts (linked_identity)
                        WHERE linked_identity IS NOT NULL
                        """
                    )
        except psycopg2.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            conn.close()

    @staticmethod
    def _to_domain(row: tuple) -> Account:
        return Account(
            id=str(row[0]).strip(),
            display_name=row[1],
            linked_identity=row[2],
            pending_code=row[3],
        )

    def _select(self, where: str, params: tuple) -> List[Account]:
        conn = self._get_connection()
        try:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"SELECT {_COLUMNS} FROM accounts WHERE {where} ORDER BY id",
                        params,
                    )
                    return [self._to_domain(row) for row in cur.fetchall()]
        except psycopg2.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            conn.close()

    def get_by_id(self, account_id: str) -> Optional[Account]:
        rows = self._select("id = %s", (account_id,))
        return rows[0] if rows else None

    def create_account(self, account: Account) -> None:
        conn = self._get_connection()
        try:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"INSERT INTO accounts ({_COLUMNS}) VALUES (%s, %s, %s, %s)",
                        (
                            account.id,
                            account.display_name,
                            account.linked_identity,
                            account.pending_code,
                        ),
                    )
        except psycopg2.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            conn.close()

    def find_by_linked_identity(self, identity: str) -> List[Account]:
        return self._select("linked_identity = %s", (identity,))

    def find_unlinked_by_code(self, code: str) -> List[Account]:
        return self._select(
            "pending_code = %s AND linked_identity IS NULL",
            (code,),
        )

    def link_account(self, account_id: str, identity: str) -> bool:
        conn = self._get_connection()
        try:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        UPDATE accounts
                        SET linked_identity = %s, pending_code = NULL
                        WHERE id = %s
                          AND linked_identity IS NULL
                          AND NOT EXISTS (
                              SELECT 1 FROM accounts WHERE linked_identity = %s
                          )
                        """,
                        (identity, account_id, identity),
                    )
                    return cur.rowcount == 1
        except pg_errors.UniqueViolation:
            # A concurrent link for the same identity committed first.
            return False
        except psycopg2.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            conn.close()
